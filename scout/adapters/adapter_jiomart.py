import re
from typing import List, Mapping, Optional

from ..domutils import card_name, text_of
from ..pricing import PRICE_RE
from ..strategies import Candidate, ExtractionContext, candidate_from_card, lookup_url
from ..urls import resolve_url

CARD_SELECTOR = (
    '[class*="plp-card-container"], [class*="jm-product"], [class*="item-card"], '
    '[data-testid*="product"]'
)
NAME_SELECTORS = (
    '[class*="product-title"]', '[class*="product-name"]', '[class*="item-title"]',
    '[class*="title"]', "h2", "h3", "h4", "h5", '[class*="name"]',
)
PERCENT_OFF_RE = re.compile(r"\d+\s*%?\s*OFF", re.IGNORECASE)
BUTTON_WORDS_RE = re.compile(r"\b(?:Add|Get|Code|OFF|Flat|Rs|Buy|Cart)\b", re.IGNORECASE)


def clean_jiomart_name(name: Optional[str]) -> Optional[str]:
    """Strip prices, "N% OFF" badges and button words that leak into titles."""
    if not name:
        return None
    name = PRICE_RE.sub("", name)
    name = re.sub(r"₹\s*", "", name)
    name = PERCENT_OFF_RE.sub("", name)
    name = BUTTON_WORDS_RE.sub("", name)
    name = re.sub(r"\s+", " ", name).strip(" -|,")
    return name or None


def fuzzy_url(url_map: Mapping[str, str], name: str) -> Optional[str]:
    """URL of the first map entry sharing at least two significant words."""
    words = [w for w in name.lower().split() if len(w) > 3]
    for key, url in url_map.items():
        lowered = key.lower()
        if sum(1 for w in words if w in lowered) >= 2:
            return url
    return None


def jiomart_url(url_map: Mapping[str, str], name: str) -> Optional[str]:
    url = lookup_url(url_map, name, prefix_words=5)
    if url is None:
        url = fuzzy_url(url_map, name)
    return url


def jiomart_cards(ctx: ExtractionContext) -> List[Candidate]:
    out = []
    for card in ctx.soup.select(CARD_SELECTOR):
        if len(text_of(card)) < 10:
            continue
        name = clean_jiomart_name(card_name(card, NAME_SELECTORS))
        if not name:
            continue
        cand = candidate_from_card(card, ctx.site, name=name)
        if cand is None:
            continue
        if not cand["product_url"] and ctx.url_map:
            cand["product_url"] = resolve_url(jiomart_url(ctx.url_map, name), ctx.site.origin)
        out.append(cand)
    return out


STRATEGIES = {"jiomart_cards": jiomart_cards}
