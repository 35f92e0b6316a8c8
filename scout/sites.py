"""
Declarative per-site configuration.

Everything that differs between storefronts (origin, selectors, blocklist
additions, URL rewrites, strategy order) lives here; the extraction engine
itself is shared. All tables are immutable and safe to share across threads.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple
from urllib.parse import quote_plus

import tldextract

from .errors import UnknownWebsite

# offline extractor: never fetch the public suffix list at runtime
_tld = tldextract.TLDExtract(suffix_list_urls=())

GENERIC_CARD_SELECTORS = (
    '[data-testid*="product"]',
    '[class*="product-card"]',
    '[class*="productCard"]',
    '[class*="item-card"]',
    '[class*="product"]',
    '[class*="card"]',
)
GENERIC_NAME_SELECTORS = (
    '[class*="product-title"]',
    '[class*="product-name"]',
    '[class*="item-title"]',
    '[class*="title"]',
    '[class*="name"]',
    "h1", "h2", "h3", "h4", "h5",
)
GENERIC_LINK_SELECTORS = (
    'a[href*="/product"]',
    'a[href*="/p/"]',
    'a[href*="/item"]',
)


@dataclass(frozen=True)
class SiteConfig:
    key: str
    display_name: str
    origin: str
    domain: str
    search_url: str
    aliases: Tuple[str, ...] = ()
    min_name_length: int = 3
    card_selectors: Tuple[str, ...] = GENERIC_CARD_SELECTORS
    name_selectors: Tuple[str, ...] = GENERIC_NAME_SELECTORS
    price_selectors: Tuple[str, ...] = ('[class*="price"]', '[class*="amount"]')
    link_selectors: Tuple[str, ...] = GENERIC_LINK_SELECTORS
    blocklist: FrozenSet[str] = frozenset()
    url_fixups: Tuple[Tuple[str, str], ...] = ()
    slug_url: Optional[str] = None
    state_globals: Tuple[str, ...] = ("__INITIAL_STATE__", "__STATE__", "__PRELOADED_STATE__")
    location_selectors: Tuple[str, ...] = ()
    strategies: Tuple[str, ...] = ("embedded_state", "structural", "generic")
    enrichers: Tuple[str, ...] = ("url_map",)
    sequential: bool = False

    def search_url_for(self, query: str) -> str:
        return self.search_url.format(query=quote_plus(query))


DMART = SiteConfig(
    key="dmart",
    display_name="DMart",
    origin="https://www.dmart.in",
    domain="dmart.in",
    search_url="https://www.dmart.in/search?searchTerm={query}",
    aliases=("d-mart", "d mart"),
    min_name_length=5,
    card_selectors=(
        '[class*="vertical-card_card-vertical"]',
        '[class*="stretched-card_card"]',
    ) + GENERIC_CARD_SELECTORS,
    name_selectors=('[class*="vertical-card_title"]', '[class*="stretched-card_title"]') + GENERIC_NAME_SELECTORS,
    blocklist=frozenset({"dmart", "view all"}),
    slug_url="https://www.dmart.in/{slug}",
    location_selectors=(
        '[class*="header_pincode"]',
        'header [class*="pincode"]',
        'header [class*="location"]',
        'header [class*="area"]',
    ),
    strategies=("embedded_state", "dmart_cards", "structural", "generic"),
)

JIOMART = SiteConfig(
    key="jiomart",
    display_name="JioMart",
    origin="https://www.jiomart.com",
    domain="jiomart.com",
    search_url="https://www.jiomart.com/search?q={query}",
    aliases=("jeomart", "jio mart"),
    min_name_length=6,
    card_selectors=(
        '[class*="plp-card-container"]',
        '[class*="jm-product"]',
        '[class*="item-card"]',
        '[data-testid*="product"]',
        '[class*="product"]',
    ),
    link_selectors=('a[href*="/p/"]', 'a[href*="/product"]', 'a[href*="/pd/"]'),
    blocklist=frozenset({"shop by category", "my orders", "my account", "sign up"}),
    location_selectors=(
        'header [class*="location"]:not([class*="delivery"]):not([class*="time"])',
        'header [class*="pincode"]',
        'header [class*="area"]',
        'header [class*="address"]',
        '[class*="location"][class*="selector"]:not([class*="delivery"])',
        '[class*="location"][class*="button"]:not([class*="delivery"])',
        '[class*="location"]:not([class*="delivery"]):not([class*="time"]):not([class*="minutes"])',
        '[class*="pincode"]',
        '[class*="area"]',
        '[class*="address"]',
        '[data-testid*="location"]',
    ),
    strategies=("embedded_state", "jiomart_cards", "generic"),
)

NATURESBASKET = SiteConfig(
    key="naturesbasket",
    display_name="naturesbasket",
    origin="https://www.naturesbasket.co.in",
    domain="naturesbasket.co.in",
    search_url="https://www.naturesbasket.co.in/search?q={query}",
    aliases=("nature's basket", "natures basket", "nature basket"),
    min_name_length=4,
    link_selectors=('a[href*="/product-detail/"]',) + GENERIC_LINK_SELECTORS,
    location_selectors=(
        'header [class*="location"]',
        'header [class*="pincode"]',
        'header [class*="area"]',
        'header [class*="address"]',
        'header [class*="city"]',
        '[class*="location"][class*="selector"]',
        '[class*="location"][class*="button"]',
        '[id*="location"]',
        '[class*="delivery"][class*="address"]',
        '[class*="delivery"][class*="location"]',
        '[class*="location"]:not([class*="select"]):not([class*="button"]):not([class*="icon"])',
        '[class*="pincode"]',
        '[class*="area"]',
        '[class*="address"]',
        '[class*="city"]',
    ),
    strategies=("embedded_state", "naturesbasket_links", "structural", "generic"),
)

ZEPTO = SiteConfig(
    key="zepto",
    display_name="Zepto",
    origin="https://www.zepto.com",
    domain="zepto.com",
    search_url="https://www.zepto.com/search?query={query}",
    aliases=("zeptonow", "zepto now"),
    min_name_length=5,
    card_selectors=('[data-testid="product-card"]', 'a[href*="/pn/"]') + GENERIC_CARD_SELECTORS,
    link_selectors=('a[href*="/pn/"]',) + GENERIC_LINK_SELECTORS,
    blocklist=frozenset({"p3", "ad", "logo", "icon", "button", "arrow", "close", "your cart is empty"}),
    location_selectors=(
        'header [class*="address"]',
        'header [class*="location"]',
        'header [class*="city"]',
        'header [class*="area"]',
        '[class*="address"][class*="header"]',
        '[class*="location"][class*="header"]',
        '[class*="delivery"][class*="address"]',
        "[data-location]",
        "[data-address]",
        '[class*="location"]:not([class*="select"]):not([class*="button"])',
        '[class*="address"]:not([class*="select"]):not([class*="button"])',
        '[class*="pincode"]',
        '[class*="area"]',
        '[data-testid*="location"]',
    ),
    strategies=("embedded_state", "zepto_images", "zepto_slots", "generic"),
)

INSTAMART = SiteConfig(
    key="swiggy",
    display_name="swiggy",
    origin="https://www.swiggy.com",
    domain="swiggy.com",
    search_url="https://www.swiggy.com/instamart/search?custom_back=true&query={query}",
    aliases=("instamart", "swiggy instamart", "swiggy-instamart"),
    min_name_length=5,
    card_selectors=(
        '[data-testid*="item-collection-card"]',
        '[data-testid*="product"]',
        '[data-testid*="search-item"]',
        '[data-testid*="item-card"]',
    ),
    link_selectors=('a[href*="/instamart/item/"]', 'a[href*="/item/"]') + GENERIC_LINK_SELECTORS,
    blocklist=frozenset({"swiggy one", "swiggy instamart", "instamart", "careers"}),
    url_fixups=(("/product/", "/instamart/item/"), ("/item/", "/instamart/item/")),
    slug_url="https://www.swiggy.com/instamart/item/{slug}",
    state_globals=("___INITIAL_STATE___", "__INITIAL_STATE__", "__STATE__"),
    location_selectors=(
        '[class*="location"]',
        '[class*="pincode"]',
        '[class*="area"]',
        '[class*="address"]',
        '[data-testid*="location"]',
        '[aria-label*="location"]',
        '[aria-label*="address"]',
    ),
    strategies=("instamart_state", "instamart_cards", "generic"),
    enrichers=("instamart_links", "url_map"),
    sequential=True,
)

SITES: Mapping[str, SiteConfig] = MappingProxyType({
    site.key: site for site in (DMART, JIOMART, NATURESBASKET, ZEPTO, INSTAMART)
})

_ALIASES: Mapping[str, str] = MappingProxyType({
    **{site.key: site.key for site in SITES.values()},
    **{alias: site.key for site in SITES.values() for alias in site.aliases},
    **{site.display_name.lower(): site.key for site in SITES.values()},
})


def get_site(website: str) -> SiteConfig:
    """Resolve a canonical key, display name or alias to its config."""
    if isinstance(website, SiteConfig):
        return website
    key = _ALIASES.get(str(website or "").strip().lower())
    if key is None:
        raise UnknownWebsite(website)
    return SITES[key]


def site_for_url(url: str) -> Optional[SiteConfig]:
    """Pick the site whose registered domain matches `url`."""
    ext = _tld(url)
    domain = f"{ext.domain}.{ext.suffix}" if ext.suffix else ext.domain
    for site in SITES.values():
        if domain == site.domain:
            return site
    return None


def site_for_filename(filename: str) -> Optional[SiteConfig]:
    """Saved artifacts are named after their site ("zepto-tomato-....html")."""
    lowered = filename.lower()
    for site in SITES.values():
        if site.key in lowered or any(a.replace(" ", "") in lowered for a in site.aliases if " " not in a):
            return site
    return None


def concurrent_sites():
    return [s for s in SITES.values() if not s.sequential]


def sequential_sites():
    return [s for s in SITES.values() if s.sequential]
