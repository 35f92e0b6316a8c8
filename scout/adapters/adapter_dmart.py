from typing import List, Optional, Tuple

from bs4 import Tag

from ..domutils import background_image, card_image, card_link, card_out_of_stock, text_of
from ..pricing import extract_price
from ..strategies import Candidate, ExtractionContext, candidate_from_card, make_candidate
from ..urls import clean_image_url, resolve_url
from ..validation import clean_name

CARD_SELECTOR = '[class*="vertical-card_card-vertical"], [class*="stretched-card_card"]'
TITLE_SELECTOR = '[class*="vertical-card_title"], [class*="stretched-card_title"]'


def labelled_prices(card: Tag) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """
    DMart prints each amount in its own box with a label:
    "MRP ₹60", "DMart ₹45", "₹15 OFF". Returns (price, mrp, rupees_off).
    """
    price = mrp = off = None
    for box in card.select('[class*="price-container"]'):
        label = text_of(box.select_one('[class*="label"]')).strip().upper()
        amount = extract_price(text_of(box.select_one('[class*="amount"]')) or None)
        if amount is None:
            continue
        if label == "MRP":
            mrp = amount
        elif label == "DMART":
            price = amount
        elif label == "OFF":
            off = amount
    return price, mrp, off


def _image(card: Tag, origin: str) -> Optional[str]:
    holder = card.select_one('[class*="image"]')
    raw = background_image(holder) if holder is not None else None
    if raw:
        return clean_image_url(resolve_url(raw, origin))
    return card_image(card, origin)


def dmart_cards(ctx: ExtractionContext) -> List[Candidate]:
    out = []
    for card in ctx.soup.select(CARD_SELECTOR):
        name = clean_name(text_of(card.select_one(TITLE_SELECTOR)))
        if not name:
            continue
        price, mrp, _ = labelled_prices(card)
        if price is None and mrp is None:
            # unlabelled layout, fall back to strike/positional reading
            cand = candidate_from_card(card, ctx.site, name=name)
            if cand is not None:
                cand["image_url"] = _image(card, ctx.site.origin)
                out.append(cand)
            continue
        out.append(make_candidate(
            name=name,
            price=price,
            mrp=mrp,
            image_url=_image(card, ctx.site.origin),
            product_url=card_link(card, ctx.site.link_selectors, ctx.site.origin),
            is_out_of_stock=card_out_of_stock(card),
        ))
    return out


STRATEGIES = {"dmart_cards": dmart_cards}
