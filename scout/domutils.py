import re
from typing import Iterable, Optional, Sequence, Tuple

from bs4 import Tag

from .pricing import price_nodes, split_price_mrp
from .urls import clean_image_url, first_srcset_url, resolve_url
from .validation import class_says_out_of_stock, clean_name, text_says_out_of_stock

BG_URL_RE = re.compile(r"url\(\s*['\"]?([^'\")]+)['\"]?\s*\)")

IMG_ATTRS = ("src", "data-src", "data-lazy-src", "data-original", "data-image", "data-img")
# logos, icons, tracking pixels and inline svg placeholders
_JUNK_IMG_RE = re.compile(r"logo|icon|sprite|placeholder|NoImage|^data:", re.IGNORECASE)


def text_of(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return re.sub(r"\s+", " ", el.get_text(" ", strip=True)).strip()


def select_first(root: Tag, selectors: Iterable[str]) -> Optional[Tag]:
    """First match of the first selector that matches anything."""
    for sel in selectors:
        el = root.select_one(sel)
        if el is not None:
            return el
    return None


def card_name(card: Tag, selectors: Sequence[str]) -> Optional[str]:
    """First non-empty text under the name selectors, falling back to img alt."""
    for sel in selectors:
        for el in card.select(sel):
            name = clean_name(text_of(el))
            if name and not name.startswith("₹"):
                return name
    img = card.find("img", alt=True)
    if img is not None:
        return clean_name(img.get("alt"))
    return None


def _img_src(img: Tag) -> Optional[str]:
    for attr in IMG_ATTRS:
        value = img.get(attr)
        if value and value.strip() and not _JUNK_IMG_RE.search(value):
            return value.strip()
    return first_srcset_url(img.get("srcset"))


def _is_junk_img(img: Tag) -> bool:
    alt = img.get("alt") or ""
    if re.search(r"logo|icon", alt, re.IGNORECASE):
        return True
    return img.get("width") == "1" or img.get("height") == "1"


def background_image(el: Tag) -> Optional[str]:
    """
    URL from an inline background-image. Stacks of fallbacks
    ("url(a), url(NoImage.png)") resolve to the first real image.
    """
    style = el.get("style") or ""
    urls = BG_URL_RE.findall(style)
    real = [u for u in urls if not _JUNK_IMG_RE.search(u) and "misc" not in u]
    if real:
        return real[0].strip()
    return urls[0].strip() if urls else None


def card_image(card: Tag, origin: str) -> Optional[str]:
    """
    Best product image inside a card: image containers first, any sensible
    <img>, <picture><source srcset>, then inline background images.
    """
    raw = None
    container = card.select_one('[class*="image"], [class*="img"], [class*="thumbnail"]')
    if container is not None:
        for img in container.find_all("img"):
            if not _is_junk_img(img):
                raw = _img_src(img)
                if raw:
                    break
    if not raw:
        for img in card.find_all("img"):
            if _is_junk_img(img):
                continue
            raw = _img_src(img)
            if raw:
                break
    if not raw:
        source = card.select_one("picture source[srcset]")
        if source is not None:
            raw = first_srcset_url(source.get("srcset"))
    if not raw:
        for el in [card] + card.select('[style*="background"]'):
            raw = background_image(el)
            if raw:
                break
    return clean_image_url(resolve_url(raw, origin))


def card_link(card: Tag, selectors: Sequence[str], origin: str, any_link: bool = True) -> Optional[str]:
    """
    Product URL for a card: the card itself when it is an anchor, then the
    site's product-link selectors, then (optionally) any usable anchor.
    """
    candidates = []
    if card.name == "a" and card.get("href"):
        candidates.append(card)
    for sel in selectors:
        candidates.extend(card.select(sel))
    if any_link:
        candidates.extend(card.find_all("a", href=True))
    # an anchor wrapping the card also counts
    parent_link = card.find_parent("a", href=True)
    if parent_link is not None:
        candidates.append(parent_link)
    for a in candidates:
        url = resolve_url(a.get("href"), origin)
        if url:
            return url
    return None


def card_prices(card: Tag, price_selectors: Sequence[str] = ()) -> Tuple[Optional[float], Optional[float]]:
    """
    (price, mrp) for a card. Savings badges and unit prices add extra
    amounts, in which case the price container holding exactly two wins.
    """
    nodes = price_nodes(card)
    if len(nodes) > 2:
        for sel in price_selectors:
            for el in card.select(sel):
                scoped = price_nodes(el)
                if len(scoped) == 2:
                    return split_price_mrp(scoped)
    return split_price_mrp(nodes)


def card_out_of_stock(card: Tag) -> bool:
    """Stock markers in the card's own classes, descendant classes or text."""
    if class_says_out_of_stock(" ".join(card.get("class") or [])):
        return True
    for el in card.select('[class*="stock"], [class*="unavailable"], [class*="sold"]'):
        if class_says_out_of_stock(" ".join(el.get("class") or [])):
            return True
    return text_says_out_of_stock(text_of(card))


def ancestor_with(el: Tag, predicate, max_depth: int = 5) -> Optional[Tag]:
    """Walk up at most `max_depth` parents looking for one accepted by `predicate`."""
    node = el.parent
    depth = 0
    while isinstance(node, Tag) and node.name not in ("body", "html", "[document]") and depth < max_depth:
        if predicate(node):
            return node
        node = node.parent
        depth += 1
    return None
