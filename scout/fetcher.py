import asyncio
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from playwright.async_api import Browser, async_playwright

from .config import Settings, get_settings
from .errors import FetchError
from .sites import SiteConfig
from .urls import resolve_url
from .validation import clean_name

logger = logging.getLogger(__name__)

UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome Safari EcomScout/1.0"
ERROR_PAGE_RE = re.compile(r"something went wrong|something's not right|went wrong", re.IGNORECASE)

# Runs in the page: text and href of every product anchor.
COLLECT_LINKS_JS = """
(anchors) => anchors.map(a => ({
    href: a.getAttribute('href'),
    title: a.getAttribute('title') || a.getAttribute('aria-label') || '',
    text: (a.innerText || '').split('\\n')[0]
}))
"""


async def init_browser(settings: Optional[Settings] = None):
    settings = settings or get_settings()
    pw = await async_playwright().start()
    browser = await pw.chromium.launch(headless=settings.headless)
    return pw, browser


def is_error_page(text: str) -> bool:
    return bool(text) and ERROR_PAGE_RE.search(text) is not None


def url_map_from_links(links: Iterable[Dict[str, str]], site: SiteConfig) -> Dict[str, str]:
    """name -> absolute URL from anchors collected in the page; first anchor wins."""
    out: Dict[str, str] = {}
    for link in links:
        url = resolve_url(link.get("href"), site.origin)
        name = clean_name(link.get("title")) or clean_name(link.get("text"))
        if not url or not name or len(name) <= 5:
            continue
        out.setdefault(name, url)
        first_words = " ".join(name.split()[:5])
        if len(first_words) > 10:
            out.setdefault(first_words, url)
    return out


async def fetch_search_page(
    site: SiteConfig,
    query: str,
    browser: Browser,
    settings: Optional[Settings] = None,
) -> Tuple[str, Dict[str, str]]:
    """
    Open the site's search page for `query` and return (html, name -> url map).
    An error page gets one reload per retry; FetchError after the last one.
    """
    settings = settings or get_settings()
    url = site.search_url_for(query)
    last_exc: Optional[Exception] = None
    for attempt in range(settings.retries + 1):
        ctx = await browser.new_context(user_agent=UA)
        try:
            page = await ctx.new_page()
            await page.goto(url, timeout=settings.nav_timeout_ms, wait_until="domcontentloaded")
            await page.wait_for_timeout(settings.settle_ms)
            if is_error_page(await page.inner_text("body")):
                logger.warning("%s: error page, reloading (attempt %d)", site.key, attempt + 1)
                await page.reload(timeout=settings.nav_timeout_ms, wait_until="domcontentloaded")
                await page.wait_for_timeout(settings.settle_ms)
            links: List[Dict[str, str]] = await page.eval_on_selector_all(
                ", ".join(site.link_selectors), COLLECT_LINKS_JS
            )
            html = await page.content()
            return html, url_map_from_links(links, site)
        except Exception as exc:
            last_exc = exc
            logger.warning("%s: fetch attempt %d failed: %s", site.key, attempt + 1, exc)
            if attempt < settings.retries:
                await asyncio.sleep(1.0 + attempt)
        finally:
            await ctx.close()
    raise FetchError(f"{site.display_name}: could not load {url}: {last_exc}") from last_exc
