import math
import re
from collections import Counter
from typing import Iterable, List, NamedTuple, Optional, Tuple

from bs4 import Tag

# Rupee glyph or its spelled-out forms, then digits with optional thousands
# separators and decimals. "Rs" must not swallow the start of a word.
PRICE_RE = re.compile(
    r"(?:₹|\bRs\.?|\bINR)\s*(\d{1,3}(?:,\d{2,3})+(?:\.\d+)?|\d+(?:[.,]\d+)?)",
    re.IGNORECASE,
)
BARE_NUMBER_RE = re.compile(r"^\s*(\d{1,3}(?:,\d{2,3})+(?:\.\d+)?|\d+(?:\.\d+)?)\s*$")
HAS_PRICE_RE = re.compile(r"₹\s*\d|\d\s*₹|\bRs\.?\s*\d", re.IGNORECASE)

STRIKE_TAGS = frozenset({"s", "del", "strike"})
STRIKE_CLASS_FRAGMENTS = ("strike", "mrp", "line-through")


class PriceNode(NamedTuple):
    price: float
    struck: bool


def _to_float(digits: str) -> Optional[float]:
    # rupee amounts never use a decimal comma: "1,00,000" and "12,50" are both grouping
    try:
        value = float(digits.replace(",", ""))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return round(value, 2)


def extract_price(text) -> Optional[float]:
    """
    Parse the first currency-marked number out of free text.
    Plain numeric text ("1,299.00") is accepted too, which is how labelled
    price cells and JSON strings come through.
    """
    if text is None:
        return None
    if isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        value = float(text)
        return round(value, 2) if math.isfinite(value) else None
    text = str(text)
    m = PRICE_RE.search(text)
    if m:
        return _to_float(m.group(1))
    m = BARE_NUMBER_RE.match(text)
    if m:
        return _to_float(m.group(1))
    return None


def find_prices(text: str) -> List[float]:
    """All positive currency-marked amounts in reading order."""
    if not text:
        return []
    out = []
    for m in PRICE_RE.finditer(text):
        value = _to_float(m.group(1))
        if value is not None and value > 0:
            out.append(value)
    return out


def has_price(text: str) -> bool:
    return bool(text) and HAS_PRICE_RE.search(text) is not None


def _is_struck(tag: Tag) -> bool:
    if tag.name in STRIKE_TAGS:
        return True
    style = (tag.get("style") or "").replace(" ", "").lower()
    if "line-through" in style:
        return True
    classes = " ".join(tag.get("class") or []).lower()
    return any(frag in classes for frag in STRIKE_CLASS_FRAGMENTS)


def classify_price_node(node: Tag) -> Optional[PriceNode]:
    """
    Read the amount in `node` and decide whether it is a struck-through MRP.
    The node itself and its immediate parent are checked for strike tags,
    line-through styling or strike/mrp class names.
    """
    price = extract_price(node.get_text(" ", strip=True))
    if price is None or price <= 0:
        return None
    struck = _is_struck(node)
    if not struck and isinstance(node.parent, Tag):
        struck = _is_struck(node.parent)
    if not struck:
        # <span>₹25</span> wrapped around a <del> child still reads as struck
        struck = any(_is_struck(child) for child in node.find_all(True, recursive=False)
                     if extract_price(child.get_text(" ", strip=True)) == price)
    return PriceNode(price, struck)


def price_nodes(card: Tag) -> List[PriceNode]:
    """
    Classify the innermost elements of `card` that carry exactly one amount.
    Outer wrappers that merely contain several amounts are skipped so each
    printed number is counted once.
    """
    nodes = []
    for el in card.find_all(True):
        text = el.get_text(" ", strip=True)
        if len(find_prices(text)) != 1:
            continue
        if any(len(find_prices(child.get_text(" ", strip=True))) == 1
               for child in el.find_all(True, recursive=False)):
            continue
        node = classify_price_node(el)
        if node is not None:
            nodes.append(node)
    # amounts written as bare text next to tagged ones ("₹20 <del>₹25</del>")
    seen = Counter(n.price for n in nodes)
    for amount in find_prices(card.get_text(" ", strip=True)):
        if seen[amount]:
            seen[amount] -= 1
        else:
            nodes.append(PriceNode(amount, False))
    return nodes


def split_price_mrp(nodes: Iterable[PriceNode]) -> Tuple[Optional[float], Optional[float]]:
    """
    Return (price, mrp). Strike classification wins; with no struck node the
    positional guess applies: first amount is MRP, second is the selling price.
    """
    nodes = list(nodes)
    if not nodes:
        return None, None
    struck = [n.price for n in nodes if n.struck]
    plain = [n.price for n in nodes if not n.struck]
    if struck:
        mrp = struck[0]
        price = plain[0] if plain else None
        return price, mrp
    if len(plain) > 1:
        return plain[1], plain[0]
    return plain[0], None


def prices_from_text(text: str) -> Tuple[Optional[float], Optional[float]]:
    """Positional (price, mrp) from raw text, for cards with no usable markup."""
    return split_price_mrp(PriceNode(p, False) for p in find_prices(text))
