import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import orjson

from .cache import append_jsonl, load_raw, save_json, save_raw
from .config import Settings, get_settings
from .envelope import iso_timestamp, make_filename
from .extractor import extract_page
from .fetcher import fetch_search_page, init_browser
from .schema import ScrapeSummary, SiteOutcome, Summary
from .sites import SITES, SiteConfig, get_site, site_for_filename

logger = logging.getLogger(__name__)

RUN_LOG = "scrape-log.jsonl"

# (site, query) -> (html, name -> url map)
Fetch = Callable[[SiteConfig, str], Awaitable[Tuple[str, Dict[str, str]]]]


def extract_site(
    html,
    website,
    query: str = "",
    url_map: Optional[Dict[str, str]] = None,
    filename: Optional[str] = None,
) -> SiteOutcome:
    """Extraction for one site with every failure folded into the outcome."""
    started = time.perf_counter()
    try:
        site = get_site(website)
        name = site.display_name
        result = extract_page(html, site, query, url_map, filename=filename)
    except Exception as exc:
        logger.error("[%s] extraction failed: %s: %s", website, type(exc).__name__, exc)
        return SiteOutcome(
            website=str(website),
            success=False,
            error=str(exc),
            duration=round(time.perf_counter() - started, 3),
        )
    return SiteOutcome(
        website=name,
        success=True,
        duration=round(time.perf_counter() - started, 3),
        data=result,
    )


def summarize(query: str, outcomes: Sequence[SiteOutcome], started: float) -> ScrapeSummary:
    ok = [o for o in outcomes if o.success]
    location = next((o.data.location for o in ok if o.data is not None and o.data.location), None)
    return ScrapeSummary(
        success=bool(ok),
        product=query,
        location=location,
        timestamp=iso_timestamp(),
        total_duration=round(time.perf_counter() - started, 3),
        summary=Summary(
            total_websites=len(outcomes),
            success_count=len(ok),
            failed_count=len(outcomes) - len(ok),
            total_products=sum(o.data.total_products for o in ok if o.data is not None),
        ),
        websites=list(outcomes),
    )


def resolve_sites(websites: Optional[Iterable[str]] = None) -> List[SiteConfig]:
    """Requested sites in registry order; all of them when none are named."""
    if not websites:
        return list(SITES.values())
    wanted = {get_site(w).key for w in websites}
    return [s for s in SITES.values() if s.key in wanted]


def save_artifacts(site: SiteConfig, query: str, filename: str, html: str, outcome: SiteOutcome, settings: Settings):
    """Raw page, result JSON and a run-log line. A failed write is logged, never raised."""
    try:
        save_raw(filename.replace(".json", ".html"), html, base=settings.output_dir)
        if outcome.data is not None:
            save_json(filename, outcome.data.to_json_dict(), base=settings.output_dir)
        append_jsonl(RUN_LOG, {
            "website": site.key,
            "product": query,
            "success": outcome.success,
            "error": outcome.error,
            "duration": outcome.duration,
            "totalProducts": outcome.data.total_products if outcome.data is not None else 0,
            "filename": filename,
        }, base=settings.output_dir)
    except OSError as exc:
        logger.warning("[%s] could not save artifacts under %s: %s", site.key, settings.output_dir, exc)


async def scrape_site(site: SiteConfig, query: str, fetch: Fetch, settings: Settings) -> SiteOutcome:
    started = time.perf_counter()
    try:
        html, url_map = await fetch(site, query)
    except Exception as exc:
        logger.error("[%s] fetch failed: %s: %s", site.key, type(exc).__name__, exc)
        return SiteOutcome(
            website=site.display_name,
            success=False,
            error=str(exc),
            duration=round(time.perf_counter() - started, 3),
        )
    filename = make_filename(site.key, query)
    outcome = await asyncio.to_thread(extract_site, html, site, query, url_map, filename)
    outcome.duration = round(time.perf_counter() - started, 3)
    if settings.save_artifacts:
        save_artifacts(site, query, filename, html, outcome, settings)
    logger.info("[%s] %s in %.1fs", site.key, "OK" if outcome.success else "ERR", outcome.duration)
    return outcome


async def run_sites(query: str, sites: Sequence[SiteConfig], fetch: Fetch, settings: Settings) -> List[SiteOutcome]:
    """
    Concurrent sites under a semaphore, then sequential ones one at a time.
    Each job folds its own errors, so one site never cancels another.
    """
    sem = asyncio.Semaphore(settings.concurrency)

    async def bounded(site: SiteConfig) -> SiteOutcome:
        async with sem:
            return await scrape_site(site, query, fetch, settings)

    concurrent = [s for s in sites if not s.sequential]
    results = dict(zip(
        (s.key for s in concurrent),
        await asyncio.gather(*(bounded(s) for s in concurrent)),
    ))
    for site in sites:
        if site.sequential:
            results[site.key] = await scrape_site(site, query, fetch, settings)
    return [results[s.key] for s in sites]


async def run_all(
    query: str,
    websites: Optional[Iterable[str]] = None,
    fetch: Optional[Fetch] = None,
    settings: Optional[Settings] = None,
) -> ScrapeSummary:
    settings = settings or get_settings()
    sites = resolve_sites(websites)
    started = time.perf_counter()
    if fetch is not None:
        return summarize(query, await run_sites(query, sites, fetch, settings), started)

    pw, browser = await init_browser(settings)
    try:
        async def browser_fetch(site: SiteConfig, q: str):
            return await fetch_search_page(site, q, browser, settings)

        outcomes = await run_sites(query, sites, browser_fetch, settings)
    finally:
        await browser.close()
        await pw.stop()
    return summarize(query, outcomes, started)


def extract_dir(directory: Path, query: str = "") -> ScrapeSummary:
    """Re-extract every saved *.html page in `directory`; the site comes from the filename."""
    started = time.perf_counter()
    outcomes = []
    for path in sorted(Path(directory).glob("*.html")):
        site = site_for_filename(path.name)
        if site is None:
            logger.warning("[SKIP] %s: no site in filename", path.name)
            continue
        outcomes.append(extract_site(load_raw(path), site, query, filename=path.name))
    return summarize(query, outcomes, started)


def print_summary(summary: ScrapeSummary):
    print(f"[DONE] {summary.summary.success_count}/{summary.summary.total_websites} sites, "
          f"{summary.summary.total_products} products")
    for o in summary.websites:
        if o.success:
            print(f"  OK   {o.website:<15} {o.data.total_products:>4} products  location={o.data.location}")
        else:
            print(f"  ERR  {o.website:<15} {o.error}")


def main(argv=None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = argparse.ArgumentParser(prog="python -m scout.scrape")
    sub = parser.add_subparsers(dest="command", required=True)

    p_extract = sub.add_parser("extract", help="re-extract saved HTML pages")
    p_extract.add_argument("directory", type=Path)
    p_extract.add_argument("--product", default="", help="search query the pages were captured for")
    p_extract.add_argument("--json", action="store_true", help="write the combined result next to the inputs")

    p_run = sub.add_parser("run", help="search every site live")
    p_run.add_argument("product")
    p_run.add_argument("--site", action="append", dest="sites", help="limit to a site (repeatable)")

    args = parser.parse_args(argv)

    if args.command == "extract":
        if not args.directory.is_dir():
            parser.error(f"not a directory: {args.directory}")
        summary = extract_dir(args.directory, args.product)
        print_summary(summary)
        if args.json:
            out = args.directory / "extracted-data.json"
            out.write_bytes(orjson.dumps(summary.to_json_dict(), option=orjson.OPT_INDENT_2))
            print(f"[SAVE] {out}")
    else:
        summary = asyncio.run(run_all(args.product, args.sites, settings=settings))
        print_summary(summary)
        print(orjson.dumps(summary.to_json_dict(), option=orjson.OPT_INDENT_2).decode())
    return 0 if summary.success else 1


if __name__ == "__main__":
    #   python -m scout.scrape extract output/ --json
    #   python -m scout.scrape run "amul butter" --site zepto
    sys.exit(main())
