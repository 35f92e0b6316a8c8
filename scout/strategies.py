"""
Shared extraction strategies.

A strategy takes an ExtractionContext and returns raw candidates (plain dicts
with name/price/mrp/discount/image_url/product_url/is_out_of_stock keys). The
extractor runs them in the order a site lists and keeps the first batch that
survives the validation gate. Enrichers run afterwards on whatever was kept.
"""
import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Dict, List, Mapping, Optional

from bs4 import BeautifulSoup, Tag

from .domutils import card_image, card_link, card_name, card_out_of_stock, card_prices, select_first, text_of
from .embedded import JsonValue, dig, find_state_payloads, first_value, walk
from .pricing import PRICE_RE, extract_price, find_prices, has_price, prices_from_text
from .sites import SiteConfig
from .urls import clean_image_url, resolve_url
from .validation import clean_name, is_valid_name, passes_gate

logger = logging.getLogger(__name__)

Candidate = Dict[str, Any]

JSON_ID_KEYS = ("id", "productId", "itemId", "product_id", "item_id", "sku", "skuId", "slug")
JSON_NAME_KEYS = ("name", "title", "productName", "displayName", "itemName", "productTitle", "product_name")
# presence of any of these marks an object as a product
JSON_PRICE_KEYS = ("price", "sellingPrice", "finalPrice", "offerPrice", "dmartPrice", "currentPrice", "mrp", "listPrice")
JSON_SELL_KEYS = ("price", "sellingPrice", "finalPrice", "offerPrice", "dmartPrice", "currentPrice", "discountedPrice")
JSON_MRP_KEYS = ("mrp", "listPrice", "originalPrice", "marketPrice")
JSON_IMAGE_KEYS = (
    "image", "imageUrl", "img", "photo", "picture", "productImage",
    "productImageUrl", "thumbnail", "thumbnailUrl",
)
JSON_URL_KEYS = ("url", "link", "href", "productUrl", "productLink")
DESCEND_FRAGMENTS = ("product", "item", "search", "listing", "result", "data", "props", "widgets", "state", "cards")

# a card showing more amounts than this is a grid wrapper, not a product
MAX_CARD_PRICES = 4

GENERIC_TAGS = ("div", "article", "section", "li")
GENERIC_NAME_SELECTORS = ("h1", "h2", "h3", "h4", "h5", "h6", '[class*="title"]', '[class*="name"]')
SEGMENT_SPLIT_RE = re.compile(r"[\n|•]+")


@dataclass
class ExtractionContext:
    soup: BeautifulSoup
    html: str
    site: SiteConfig
    url_map: Mapping[str, str] = field(default_factory=dict)

    @cached_property
    def payloads(self) -> List[JsonValue]:
        return find_state_payloads(self.soup, self.html, self.site.state_globals)

    def accepts(self, candidate: Candidate) -> bool:
        return passes_gate(candidate, self.site.min_name_length, self.site.blocklist)

    def valid_name(self, name: Optional[str]) -> bool:
        return is_valid_name(name, self.site.min_name_length, self.site.blocklist)


Strategy = Callable[[ExtractionContext], List[Candidate]]
Enricher = Callable[[ExtractionContext, List[Candidate]], List[Candidate]]


def make_candidate(name=None, price=None, mrp=None, image_url=None, product_url=None,
                   is_out_of_stock=False, discount=None) -> Candidate:
    return {
        "name": clean_name(name),
        "price": price,
        "mrp": mrp,
        "discount": discount,
        "image_url": image_url,
        "product_url": product_url,
        "is_out_of_stock": bool(is_out_of_stock),
    }


# ---------------------------------------------------------------------------
# embedded state
# ---------------------------------------------------------------------------

def _descend(key: str) -> bool:
    lowered = key.lower()
    return any(frag in lowered for frag in DESCEND_FRAGMENTS)


def looks_like_product(node: Dict[str, Any]) -> bool:
    """An identifier, a name longer than three characters and a price-ish key."""
    if not any(node.get(key) not in (None, "") for key in JSON_ID_KEYS):
        return False
    name = first_value(node, JSON_NAME_KEYS)
    if not isinstance(name, str) or len(name.strip()) <= 3:
        return False
    return any(node.get(key) is not None for key in JSON_PRICE_KEYS)


def _json_amount(value, keys=("value", "amount", "offer_price", "offerPrice", "price")) -> Optional[float]:
    if isinstance(value, dict):
        value = first_value(value, keys)
    if isinstance(value, (dict, list)):
        return None
    return extract_price(value)


def _json_image(item: Dict[str, Any]) -> Optional[str]:
    raw = first_value(item, JSON_IMAGE_KEYS)
    if raw is None:
        raw = (dig(item, "media", "image") or dig(item, "media", "url") or dig(item, "media", "src")
               or dig(item, "images", 0) or dig(item, "product", "image")
               or dig(item, "product", "imageUrl") or dig(item, "product", "thumbnail"))
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if isinstance(raw, dict):
        raw = first_value(raw, ("url", "src", "image", "original", "secure_url"))
    return raw if isinstance(raw, str) else None


def _json_stock(item: Dict[str, Any]) -> bool:
    if item.get("isOutOfStock") is True or item.get("outOfStock") is True:
        return True
    if item.get("inStock") is False or item.get("in_stock") is False or item.get("available") is False:
        return True
    availability = item.get("availability")
    if availability is False:
        return True
    if isinstance(availability, str):
        lowered = availability.lower()
        return "outofstock" in lowered.replace("_", "").replace(" ", "") or "unavailable" in lowered
    return False


def product_from_json(item: Dict[str, Any], site: SiteConfig) -> Candidate:
    """Map one embedded-state product object onto a candidate."""
    name = first_value(item, JSON_NAME_KEYS)
    price = None
    for key in JSON_SELL_KEYS:
        price = _json_amount(item.get(key))
        if price:
            break
    mrp = None
    for key in JSON_MRP_KEYS:
        mrp = _json_amount(item.get(key))
        if mrp:
            break
    if mrp is None and isinstance(item.get("price"), dict):
        mrp = _json_amount(item["price"].get("mrp"))

    url = first_value(item, JSON_URL_KEYS)
    url = resolve_url(url, site.origin) if isinstance(url, str) else None
    if url is None and isinstance(item.get("slug"), str) and site.slug_url:
        url = site.slug_url.format(slug=item["slug"].strip("/"))

    image = resolve_url(_json_image(item), site.origin)
    return make_candidate(
        name=name if isinstance(name, str) else None,
        price=price,
        mrp=mrp,
        image_url=clean_image_url(image),
        product_url=url,
        is_out_of_stock=_json_stock(item),
    )


def products_in_state(payload: JsonValue, site: SiteConfig) -> List[Candidate]:
    return [product_from_json(node, site) for _, node in walk(payload, looks_like_product, _descend)]


def embedded_state(ctx: ExtractionContext) -> List[Candidate]:
    out: List[Candidate] = []
    for payload in ctx.payloads:
        out.extend(products_in_state(payload, ctx.site))
    return out


# ---------------------------------------------------------------------------
# DOM
# ---------------------------------------------------------------------------

def candidate_from_card(card: Tag, site: SiteConfig, name: Optional[str] = None) -> Optional[Candidate]:
    """Name, prices, image, link and stock from one product card; None without a price."""
    if len(find_prices(text_of(card))) > MAX_CARD_PRICES:
        return None
    price, mrp = card_prices(card, site.price_selectors)
    if price is None and mrp is None:
        return None
    return make_candidate(
        name=name or card_name(card, site.name_selectors),
        price=price,
        mrp=mrp,
        image_url=card_image(card, site.origin),
        product_url=card_link(card, site.link_selectors, site.origin),
        is_out_of_stock=card_out_of_stock(card),
    )


def structural(ctx: ExtractionContext) -> List[Candidate]:
    """Cards from the first card selector that produces anything acceptable."""
    for sel in ctx.site.card_selectors:
        cards = ctx.soup.select(sel)
        if not cards:
            continue
        found = [c for c in (candidate_from_card(card, ctx.site) for card in cards) if c and ctx.accepts(c)]
        if found:
            logger.debug("%s: %d cards via %s", ctx.site.key, len(found), sel)
            return found
    return []


def name_before_price(el: Tag, ctx: ExtractionContext) -> Optional[str]:
    """
    Text preceding the first amount, split on line breaks, pipes and bullets.
    Up to three segments are tried walking backwards from the price.
    """
    text = el.get_text("\n", strip=True)
    m = PRICE_RE.search(text)
    if not m:
        return None
    segments = [s.strip() for s in SEGMENT_SPLIT_RE.split(text[:m.start()]) if s.strip()]
    for segment in reversed(segments[-3:]):
        name = clean_name(segment)
        if ctx.valid_name(name):
            return name
    return None


def _generic_name(el: Tag, ctx: ExtractionContext) -> Optional[str]:
    heading = select_first(el, GENERIC_NAME_SELECTORS)
    if heading is not None:
        name = clean_name(text_of(heading))
        if ctx.valid_name(name) and not has_price(name):
            return name
    return name_before_price(el, ctx)


def generic(ctx: ExtractionContext) -> List[Candidate]:
    """
    Last resort: any small block with a currency amount and a nameable
    prefix. When blocks nest, the innermost one wins.
    """
    named = {}
    for el in ctx.soup.find_all(GENERIC_TAGS):
        text = text_of(el)
        if not 10 <= len(text) <= 500 or not has_price(text):
            continue
        if len(el.find_all(True, recursive=False)) > 10:
            continue
        name = _generic_name(el, ctx)
        if name:
            named[id(el)] = (el, name)

    out = []
    for el, name in named.values():
        if any(id(d) in named for d in el.find_all(GENERIC_TAGS)):
            continue
        price, mrp = card_prices(el)
        if price is None and mrp is None:
            price, mrp = prices_from_text(text_of(el))
        out.append(make_candidate(
            name=name,
            price=price,
            mrp=mrp,
            image_url=card_image(el, ctx.site.origin),
            product_url=card_link(el, ctx.site.link_selectors, ctx.site.origin, any_link=False),
            is_out_of_stock=card_out_of_stock(el),
        ))
    return out


# ---------------------------------------------------------------------------
# enrichers
# ---------------------------------------------------------------------------

def lookup_url(url_map: Mapping[str, str], name: Optional[str], prefix_words: int = 0) -> Optional[str]:
    """
    Side-channel URL for `name`: exact key, then case-insensitive, then (when
    `prefix_words` is set) the first key with the same leading words.
    """
    if not url_map or not name:
        return None
    if name in url_map:
        return url_map[name]
    lowered = name.lower().strip()
    for key, url in url_map.items():
        if key.lower().strip() == lowered:
            return url
    if prefix_words:
        prefix = " ".join(lowered.split()[:prefix_words])
        # short prefixes ("amul 1") match too much
        if len(prefix) <= 10:
            return None
        for key, url in url_map.items():
            if " ".join(key.lower().split()[:prefix_words]) == prefix:
                return url
    return None


def url_map_enricher(ctx: ExtractionContext, candidates: List[Candidate]) -> List[Candidate]:
    """Backfill missing product URLs from the fetcher's name -> URL map."""
    if not ctx.url_map:
        return candidates
    for cand in candidates:
        if cand.get("product_url"):
            continue
        url = resolve_url(lookup_url(ctx.url_map, cand.get("name")), ctx.site.origin)
        if url:
            cand["product_url"] = url
    return candidates


SHARED_STRATEGIES: Mapping[str, Strategy] = {
    "embedded_state": embedded_state,
    "structural": structural,
    "generic": generic,
}
SHARED_ENRICHERS: Mapping[str, Enricher] = {
    "url_map": url_map_enricher,
}
