import logging
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple, Union

from bs4 import BeautifulSoup

from .adapters import adapter_dmart, adapter_instamart, adapter_jiomart, adapter_naturesbasket, adapter_zepto
from .envelope import build_envelope
from .errors import ParseFailure
from .location import extract_location
from .normalizer import normalize
from .schema import Product, SiteResult
from .sites import SiteConfig, get_site
from .strategies import SHARED_ENRICHERS, SHARED_STRATEGIES, Candidate, Enricher, ExtractionContext, Strategy

logger = logging.getLogger(__name__)

Document = Union[str, bytes, BeautifulSoup]

STRATEGIES: Mapping[str, Strategy] = MappingProxyType({
    **SHARED_STRATEGIES,
    **adapter_dmart.STRATEGIES,
    **adapter_jiomart.STRATEGIES,
    **adapter_naturesbasket.STRATEGIES,
    **adapter_zepto.STRATEGIES,
    **adapter_instamart.STRATEGIES,
})
ENRICHERS: Mapping[str, Enricher] = MappingProxyType({
    **SHARED_ENRICHERS,
    **adapter_instamart.ENRICHERS,
})


def parse_document(doc: Document) -> Tuple[BeautifulSoup, str]:
    """(soup, html) for a page; ParseFailure when there is nothing to parse."""
    if isinstance(doc, BeautifulSoup):
        if doc.find(True) is None:
            raise ParseFailure("document has no elements")
        return doc, str(doc)
    if isinstance(doc, bytes):
        try:
            doc = doc.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseFailure(f"page is not UTF-8 text: {e}") from e
    if not isinstance(doc, str):
        raise ParseFailure(f"expected HTML text, got {type(doc).__name__}")
    if not doc.strip():
        raise ParseFailure("empty page")
    soup = BeautifulSoup(doc, "lxml")
    if soup.find(True) is None:
        raise ParseFailure("no element tree")
    return soup, doc


def run_cascade(ctx: ExtractionContext) -> List[Candidate]:
    """
    Run the site's strategies in order and keep the first batch with at least
    one acceptable candidate, then apply every enricher.
    """
    site = ctx.site
    kept: List[Candidate] = []
    for name in site.strategies:
        try:
            found = STRATEGIES[name](ctx)
        except Exception:
            logger.warning("%s: strategy %s failed", site.key, name, exc_info=True)
            continue
        accepted = [c for c in found if ctx.accepts(c)]
        logger.debug("%s: strategy %s -> %d raw, %d accepted", site.key, name, len(found), len(accepted))
        if accepted:
            kept = accepted
            break
    for name in site.enrichers:
        kept = ENRICHERS[name](ctx, kept)
    return [c for c in kept if ctx.accepts(c)]


def extract_candidates(doc: Document, website, url_map: Optional[Mapping[str, str]] = None) -> List[Candidate]:
    site = get_site(website)
    soup, html = parse_document(doc)
    ctx = ExtractionContext(soup=soup, html=html, site=site, url_map=dict(url_map or {}))
    return run_cascade(ctx)


def extract_products(doc: Document, website, url_map: Optional[Mapping[str, str]] = None) -> List[Product]:
    site = get_site(website)
    products = normalize(extract_candidates(doc, site, url_map), site)
    if not products:
        logger.info("%s: no products on page", site.display_name)
    return products


def extract_page(
    doc: Document,
    website,
    query: str = "",
    url_map: Optional[Mapping[str, str]] = None,
    filename: Optional[str] = None,
) -> SiteResult:
    """Products plus delivery location for one captured page, as an envelope."""
    site: SiteConfig = get_site(website)
    soup, html = parse_document(doc)
    ctx = ExtractionContext(soup=soup, html=html, site=site, url_map=dict(url_map or {}))
    products = normalize(run_cascade(ctx), site)
    if not products:
        logger.info("%s: no products on page", site.display_name)
    location = extract_location(soup, site, html)
    logger.info("%s: %d products, location=%s", site.display_name, len(products), location or "unknown")
    return build_envelope(site, location, query, products, filename=filename)
