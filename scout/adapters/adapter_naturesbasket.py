from typing import List

from ..domutils import ancestor_with, card_image, card_out_of_stock, card_prices, text_of
from ..pricing import has_price
from ..strategies import Candidate, ExtractionContext, make_candidate
from ..urls import resolve_url
from ..validation import clean_name

CONTAINER_TAGS = ("div", "article", "section", "li")


def _price_container(el):
    return el.name in CONTAINER_TAGS and has_price(text_of(el))


def naturesbasket_links(ctx: ExtractionContext) -> List[Candidate]:
    """<a href="/product-detail/..."><h3>Name</h3></a> inside a priced container."""
    out = []
    for link in ctx.soup.select('a[href*="/product-detail/"]'):
        name = clean_name(text_of(link.find("h3")) or text_of(link))
        if not name:
            continue
        container = ancestor_with(link, _price_container)
        if container is None:
            continue
        price, mrp = card_prices(container, ctx.site.price_selectors)
        if price is None:
            continue
        out.append(make_candidate(
            name=name,
            price=price,
            mrp=mrp,
            image_url=card_image(container, ctx.site.origin) or card_image(link, ctx.site.origin),
            product_url=resolve_url(link.get("href"), ctx.site.origin),
            is_out_of_stock=card_out_of_stock(container),
        ))
    return out


STRATEGIES = {"naturesbasket_links": naturesbasket_links}
