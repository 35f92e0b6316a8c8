import re
from typing import Any, Dict, FrozenSet, Optional, Pattern, Sequence

MAX_NAME_LENGTH = 200

# UI chrome that shows up inside product grids and must never be a product name.
BLOCKLIST: FrozenSet[str] = frozenset(s.lower() for s in (
    "Add", "Add to Cart", "Add to Basket", "Buy Now", "View Details", "View Cart",
    "Checkout", "Remove", "Quantity", "Notify Me",
    "MRP", "Price", "OFF", "Rs", "INR", "Rupees", "₹",
    "Out of Stock", "In Stock", "Sold Out", "Available", "Unavailable",
    "Currently Unavailable",
    "FREE DELIVERY", "Delivery", "Pickup",
    "Home", "Cart", "Search", "Menu", "Login", "Sign In", "Sign Up", "Register",
    "Categories", "All", "Filters", "Sort", "Shop By Category", "My Orders",
    "My Account", "Careers", "Select Location", "Location", "Change", "Update",
))

EXCLUDED_PATTERNS: Sequence[Pattern] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"^free\s+delivery",
    r"on\s+orders\s+above",
    r"^\d+\s*-\s*\d+\s*min(?:ute)?s?\b",
    r"^(?:delivery|delivering)\s+(?:in|to|time)\b",
    r"^scheduled\s+delivery",
    r"^(?:add\s+to\s+cart|view\s+cart|checkout|remove|quantity|filters?|sort\b)",
    r"^\d+\s*%\s*off$",
    r"^(?:get|flat)\s+\d+",
    r"^(?:swiggy(?:\s+(?:one|instamart))?|instamart|zepto|jiomart|d-?mart|nature'?s\s+basket)$",
    r"\.(?:png|jpe?g|gif|svg|webp)$",
))

# digits, currency glyphs, separators and nothing else
SYMBOLS_ONLY_RE = re.compile(r"^[\d\s₹\-.,/%+*:()|]+$")
HAS_LETTER_RE = re.compile(r"[^\W\d_]")
EDGE_JUNK_RE = re.compile(r"^[\W_]+|[\W_]+$")

OUT_OF_STOCK_RE = re.compile(
    r"\bout\s+of\s+stock\b|\bsold\s+out\b|\bcurrently\s+unavailable\b|\bunavailable\b|\bnotify\s+me\b",
    re.IGNORECASE,
)
STOCK_CLASS_FRAGMENTS = ("out-of-stock", "outofstock", "no-stock", "sold-out", "unavailable")


def clean_name(name: Any) -> Optional[str]:
    if not isinstance(name, str):
        return None
    name = re.sub(r"\s+", " ", name).strip()
    return name or None


def _chrome_phrase(lowered: str, blocked: FrozenSet[str]) -> bool:
    # "out of stock!", "mrp:" and "mrp ₹25" are the bare phrase plus punctuation or a price
    if EDGE_JUNK_RE.sub("", lowered) in blocked:
        return True
    for phrase in blocked:
        rest = lowered[len(phrase):]
        if lowered.startswith(phrase) and rest and not rest[0].isalnum() and SYMBOLS_ONLY_RE.match(rest):
            return True
    return False


def is_blocked_name(name: str, extra: FrozenSet[str] = frozenset()) -> bool:
    """
    True for UI chrome: blocklisted phrases (also with trailing punctuation
    or a trailing amount), excluded patterns, bare symbols.
    """
    lowered = name.lower().strip()
    if lowered in BLOCKLIST or lowered in extra:
        return True
    if _chrome_phrase(lowered, BLOCKLIST | extra):
        return True
    if SYMBOLS_ONLY_RE.match(name) or not HAS_LETTER_RE.search(name):
        return True
    return any(p.search(name) for p in EXCLUDED_PATTERNS)


def is_valid_name(name: Optional[str], min_length: int = 3, extra: FrozenSet[str] = frozenset()) -> bool:
    if not name:
        return False
    if len(name) < min_length or len(name) > MAX_NAME_LENGTH:
        return False
    return not is_blocked_name(name, extra)


def passes_gate(candidate: Dict[str, Any], min_length: int = 3, extra: FrozenSet[str] = frozenset()) -> bool:
    """
    Acceptance test applied to every candidate whatever strategy produced it:
    a plausible name and at least one of a positive price or a product URL.
    """
    name = clean_name(candidate.get("name"))
    if not is_valid_name(name, min_length, extra):
        return False
    price = candidate.get("price")
    has_price = isinstance(price, (int, float)) and not isinstance(price, bool) and price > 0
    return has_price or bool(candidate.get("product_url"))


def text_says_out_of_stock(text: Optional[str]) -> bool:
    return bool(text) and OUT_OF_STOCK_RE.search(text) is not None


def class_says_out_of_stock(classes: str) -> bool:
    classes = classes.lower()
    return any(frag in classes for frag in STOCK_CLASS_FRAGMENTS)
