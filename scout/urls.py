from typing import Iterable, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlsplit, urlunsplit

# Query params worth keeping on CDN image URLs; everything else is tracking.
IMAGE_PARAMS = frozenset({"w", "h", "q", "fit", "width", "height", "quality"})

_SKIP_PREFIXES = ("#", "javascript:", "data:", "mailto:", "tel:", "about:")


def is_absolute_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parts = urlparse(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def resolve_url(raw: Optional[str], origin: str) -> Optional[str]:
    """
    Make `raw` absolute against a site origin such as "https://www.zepto.com".
    Anchors, javascript: and data: pseudo-URLs resolve to None.
    """
    if not raw or not isinstance(raw, str):
        return None
    url = raw.strip()
    if not url or url.lower().startswith(_SKIP_PREFIXES):
        return None
    if url.startswith("//"):
        return "https:" + url
    if "://" in url:
        return url if is_absolute_url(url) else None
    origin = origin.rstrip("/")
    if url.startswith("/"):
        return origin + url
    return origin + "/" + url


def clean_image_url(url: Optional[str]) -> Optional[str]:
    """Drop query params other than sizing/quality hints."""
    if not url:
        return url
    parts = urlsplit(url)
    if not parts.query:
        return url
    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k in IMAGE_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(kept), ""))


def apply_url_fixups(url: Optional[str], fixups: Iterable[Tuple[str, str]]) -> Optional[str]:
    """
    Rewrite the first occurrence of each `src` path fragment to `dst`,
    skipping a rule when the URL already carries `dst`.
    """
    if not url:
        return url
    for src, dst in fixups:
        if dst in url or src not in url:
            continue
        url = url.replace(src, dst, 1)
    return url


def first_srcset_url(srcset: Optional[str]) -> Optional[str]:
    if not srcset:
        return None
    first = srcset.split(",")[0].strip()
    return first.split(" ")[0] or None
