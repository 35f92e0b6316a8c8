from datetime import datetime, timezone
from typing import List, Optional

from slugify import slugify

from .schema import Product, SiteResult
from .sites import get_site


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(now: Optional[datetime] = None) -> str:
    return (now or utc_now()).isoformat().replace("+00:00", "Z")


def make_filename(site_key: str, query: str, now: Optional[datetime] = None) -> str:
    """Provenance name for a result: "<site>-<slug(query)>-<stamp>.json"."""
    stamp = (now or utc_now()).strftime("%Y%m%dT%H%M%S%fZ")
    base = slugify(query or "", max_length=80) or "all"
    return f"{site_key}-{base}-{stamp}.json"


def build_envelope(
    website,
    location: Optional[str],
    query: str,
    products: List[Product],
    filename: Optional[str] = None,
) -> SiteResult:
    site = get_site(website)
    now = utc_now()
    return SiteResult(
        website=site.display_name,
        location=location,
        product=query or "",
        timestamp=iso_timestamp(now),
        filename=filename or make_filename(site.key, query, now),
        products=list(products),
        total_products=len(products),
    )
