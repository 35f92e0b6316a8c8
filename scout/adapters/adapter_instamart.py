"""
Swiggy Instamart.

Class names are obfuscated and rotate, so the page is read through its
hydration state (`window.___INITIAL_STATE___`) and `data-testid` hooks, with
a final pass over `/instamart/item/` anchors that always runs.
"""
import logging
from typing import List, Optional

from bs4 import Tag

from ..domutils import ancestor_with, card_image, card_name, card_out_of_stock, card_prices, text_of
from ..embedded import dig, find_global_assignments
from ..pricing import has_price
from ..strategies import (
    Candidate,
    ExtractionContext,
    candidate_from_card,
    make_candidate,
    product_from_json,
    products_in_state,
)
from ..urls import resolve_url
from ..validation import clean_name

logger = logging.getLogger(__name__)

STATE_PATHS = (
    ("searchPLV2", "data", "items"),
    ("categoryListingV2", "data", "items"),
    ("campaignListingV2", "data", "items"),
    ("instamart", "searchResults"),
)
CARD_SELECTOR = (
    '[data-testid*="item-collection-card"], [data-testid*="product"], '
    '[data-testid*="search-item"], [data-testid*="item-card"]'
)
NAME_SELECTORS = ('[class*="title"]', '[class*="name"]', "h2", "h3", "h4")
ITEM_LINK_SELECTOR = 'a[href*="/instamart/item/"]'


def initial_state(ctx: ExtractionContext):
    for _, value in find_global_assignments(ctx.html, ctx.site.state_globals):
        if isinstance(value, dict):
            return value
    return None


def instamart_state(ctx: ExtractionContext) -> List[Candidate]:
    """Known listing paths first, then the generic walk over every payload."""
    out: List[Candidate] = []
    state = initial_state(ctx)
    if state is not None:
        for path in STATE_PATHS:
            items = dig(state, *path)
            if not isinstance(items, list):
                continue
            for item in items:
                if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                    continue
                # prices often live on the first variation only
                variant = dig(item, "variations", 0)
                if isinstance(variant, dict):
                    item = {**variant, **item}
                out.append(product_from_json(item, ctx.site))
        if out:
            logger.debug("instamart: %d items from known state paths", len(out))
            return out
    for payload in ctx.payloads:
        out.extend(products_in_state(payload, ctx.site))
    return out


def instamart_cards(ctx: ExtractionContext) -> List[Candidate]:
    out = []
    for card in ctx.soup.select(CARD_SELECTOR):
        cand = candidate_from_card(card, ctx.site, name=card_name(card, NAME_SELECTORS))
        if cand is not None:
            out.append(cand)
    return out


def _anchor_name(link: Tag) -> Optional[str]:
    for value in (link.get("title"), link.get("aria-label")):
        name = clean_name(value)
        if name:
            return name
    img = link.find("img", alt=True)
    if img is not None and clean_name(img.get("alt")):
        return clean_name(img.get("alt"))
    name = card_name(link, NAME_SELECTORS)
    return name or clean_name(link.get_text("\n", strip=True).split("\n")[0])


def instamart_links(ctx: ExtractionContext, candidates: List[Candidate]) -> List[Candidate]:
    """
    Every /instamart/item/ anchor is a product. Backfill URLs for candidates
    found by name, and append anchors nothing else picked up.
    """
    by_name = {(c.get("name") or "").lower(): c for c in candidates}
    seen_urls = {c.get("product_url") for c in candidates if c.get("product_url")}
    for link in ctx.soup.select(ITEM_LINK_SELECTOR):
        url = resolve_url(link.get("href"), ctx.site.origin)
        if not url or url in seen_urls:
            continue
        name = _anchor_name(link)
        if not name:
            continue
        existing = by_name.get(name.lower())
        if existing is not None:
            if not existing.get("product_url"):
                existing["product_url"] = url
                seen_urls.add(url)
            continue
        container = ancestor_with(link, lambda el: has_price(text_of(el))) or link
        price, mrp = card_prices(container, ctx.site.price_selectors)
        cand = make_candidate(
            name=name,
            price=price,
            mrp=mrp,
            image_url=card_image(link, ctx.site.origin) or card_image(container, ctx.site.origin),
            product_url=url,
            is_out_of_stock=card_out_of_stock(container),
        )
        candidates.append(cand)
        by_name[name.lower()] = cand
        seen_urls.add(url)
    return candidates


STRATEGIES = {"instamart_state": instamart_state, "instamart_cards": instamart_cards}
ENRICHERS = {"instamart_links": instamart_links}
