"""
Delivery-location detection.

Every storefront shows the delivery area somewhere in its header and usually
again in its hydration state. Location is best effort: `extract_location`
returns None rather than raising.
"""
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from .embedded import dig, find_global_assignments, find_state_payloads, walk_strings
from .sites import SiteConfig, get_site

logger = logging.getLogger(__name__)

PINCODE_CITY_RE = re.compile(r"^(\d{6})\s*([A-Za-z][A-Za-z .]*)$")
PINCODE_RE = re.compile(r"^\d{6}$")
# first three digits of a pincode -> city
PINCODE_PREFIXES = (
    ("400", "Mumbai"),
    ("560", "Bengaluru"),
    ("600", "Chennai"),
    ("110", "Delhi"),
    ("700", "Kolkata"),
)
STATE_KEY_FRAGMENTS = ("pincode", "location", "city", "area", "address")

SCHEDULED_RE = re.compile(r"scheduled\s+delivery\s+to:\s*(.+)", re.IGNORECASE)
DELIVERING_TO_RE = re.compile(r"^delivering\s+to:?\s*", re.IGNORECASE)
TIME_WINDOW_RE = re.compile(r"\d+\s*-\s*\d+\s*min(?:ute)?s?\s*", re.IGNORECASE)
UI_WORDS_RE = re.compile(
    r"^(?:select(?:\s+location)?|location|change|update|delivery|pickup|cart|home|menu|search"
    r"|sign\s*in|login|register|your cart is empty)$",
    re.IGNORECASE,
)
EXCLUDED_RE = re.compile(r"minutes|delivery\s+time|scheduled\s+delivery|delivering\s+to", re.IGNORECASE)


def format_pincode(text: str) -> str:
    """Turn "400053Mumbai" into "Mumbai (400053)"; a bare pincode gets its city when known."""
    m = PINCODE_CITY_RE.match(text)
    if m:
        return f"{m.group(2).strip()} ({m.group(1)})"
    if PINCODE_RE.match(text):
        for prefix, city in PINCODE_PREFIXES:
            if text.startswith(prefix):
                return f"{city} ({text})"
    return text


def clean_location_text(text: Optional[str]) -> Optional[str]:
    """Strip delivery-promise chrome around the area name; None when nothing usable is left."""
    if not text:
        return None
    text = re.sub(r"\s+", " ", text).strip()
    m = SCHEDULED_RE.search(text)
    if m:
        text = m.group(1).strip()
    text = DELIVERING_TO_RE.sub("", text)
    text = TIME_WINDOW_RE.sub("", text).strip()
    if EXCLUDED_RE.search(text):
        return None
    if PINCODE_RE.match(text) or PINCODE_CITY_RE.match(text):
        return format_pincode(text)
    text = text.split(",")[0].split("...")[0].split("…")[0].strip()
    if not 3 < len(text) < 100 or not re.search(r"[A-Za-z]", text):
        return None
    if UI_WORDS_RE.match(text):
        return None
    return text


def _from_selectors(soup: BeautifulSoup, site: SiteConfig) -> Optional[str]:
    for sel in site.location_selectors:
        for el in soup.select(sel):
            for attr in ("data-location", "data-address"):
                if el.get(attr):
                    loc = clean_location_text(el[attr])
                    if loc:
                        return loc
            loc = clean_location_text(el.get_text(" ", strip=True))
            if loc:
                return loc
    return None


def _state_key(key: str) -> bool:
    lowered = key.lower()
    return any(frag in lowered for frag in STATE_KEY_FRAGMENTS)


def _from_state(soup: BeautifulSoup, html: str, site: SiteConfig) -> Optional[str]:
    for payload in find_state_payloads(soup, html, site.state_globals):
        for value in walk_strings(payload, _state_key):
            loc = clean_location_text(value)
            if loc:
                return loc
    return None


def _from_user_location(html: str, site: SiteConfig) -> Optional[str]:
    for _, state in find_global_assignments(html, site.state_globals):
        for key in ("address", "annotation"):
            value = dig(state, "userLocation", key)
            if isinstance(value, str) and value.strip():
                return re.sub(r"\s+", " ", value).strip()
    return None


def extract_location(soup: BeautifulSoup, website, html: Optional[str] = None) -> Optional[str]:
    """Delivery area shown on the page, or None."""
    try:
        site = get_site(website)
        html = html if html is not None else str(soup)
        if site.key == "swiggy":
            loc = _from_user_location(html, site)
            if loc:
                return loc
        return _from_selectors(soup, site) or _from_state(soup, html, site)
    except Exception:
        logger.debug("location lookup failed for %s", website, exc_info=True)
        return None
