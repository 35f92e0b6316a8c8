import re
from typing import List, Optional

from bs4 import Tag

from ..domutils import ancestor_with, card_link, card_out_of_stock, card_prices, text_of
from ..pricing import has_price
from ..strategies import Candidate, ExtractionContext, candidate_from_card, make_candidate
from ..urls import clean_image_url, resolve_url
from ..validation import clean_name

# alt texts on badges and chrome rather than product shots
NON_PRODUCT_ALT_RE = re.compile(r"^(?:P3|Ad|logo|icon|button|arrow|close|menu|search|Zepto)$", re.IGNORECASE)
MAX_WALK_UP = 5


def _priced(el: Tag) -> bool:
    return has_price(text_of(el))


def _img_src(img: Tag) -> Optional[str]:
    for attr in ("src", "data-src", "data-lazy-src", "data-original"):
        if img.get(attr):
            return img[attr]
    return None


def _link(container: Tag, ctx: ExtractionContext) -> Optional[str]:
    # /pn/ is the product page route; a card that is itself an anchor counts
    if container.name == "a" and "/pn/" in (container.get("href") or ""):
        return resolve_url(container["href"], ctx.site.origin)
    return card_link(container, ctx.site.link_selectors, ctx.site.origin)


def zepto_images(ctx: ExtractionContext) -> List[Candidate]:
    """Product shots carry the product name in alt/title; walk up to the priced card."""
    out = []
    for img in ctx.soup.select("img[alt], img[title]"):
        name = clean_name(img.get("alt") or img.get("title"))
        if not name or len(name) < 5 or NON_PRODUCT_ALT_RE.match(name):
            continue
        container = ancestor_with(img, _priced, max_depth=MAX_WALK_UP)
        if container is None:
            continue
        price, mrp = card_prices(container, ctx.site.price_selectors)
        if price is None:
            continue
        out.append(make_candidate(
            name=name,
            price=price,
            mrp=mrp,
            image_url=clean_image_url(resolve_url(_img_src(img), ctx.site.origin)),
            product_url=_link(container, ctx),
            is_out_of_stock=card_out_of_stock(container),
        ))
    return out


def zepto_slots(ctx: ExtractionContext) -> List[Candidate]:
    out = []
    for slot in ctx.soup.select('[data-slot-id="ProductName"]'):
        card = ancestor_with(slot, _priced, max_depth=MAX_WALK_UP)
        if card is None:
            continue
        name = clean_name(text_of(slot))
        if not name or len(name) < 3:
            img = card.find("img", alt=True) or card.find("img", title=True)
            name = clean_name(img.get("alt") or img.get("title")) if img is not None else None
        cand = candidate_from_card(card, ctx.site, name=name)
        if cand is not None:
            cand["product_url"] = _link(card, ctx)
            out.append(cand)
    return out


STRATEGIES = {"zepto_images": zepto_images, "zepto_slots": zepto_slots}
