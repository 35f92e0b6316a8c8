import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from .pricing import extract_price
from .schema import Product
from .sites import SiteConfig, get_site
from .urls import apply_url_fixups, clean_image_url, is_absolute_url, resolve_url
from .validation import clean_name, is_valid_name, passes_gate, text_says_out_of_stock

logger = logging.getLogger(__name__)


def coerce_price(value: Any) -> Optional[float]:
    """Positive 2-decimal amount, or None for anything else."""
    price = extract_price(value)
    if price is None or price <= 0:
        return None
    return price


def discount_fields(price: Optional[float], mrp: Optional[float]):
    """(percent, amount) when the MRP is above the price, else (None, None)."""
    if price is None or mrp is None or mrp <= price:
        return None, None
    # halves round up: 12.5 -> 13
    return float(math.floor((mrp - price) / mrp * 100 + 0.5)), round(mrp - price, 2)


def _absolute(url: Optional[str], site: SiteConfig) -> Optional[str]:
    url = resolve_url(url, site.origin)
    return url if is_absolute_url(url) else None


def dedup_key(cand: Dict[str, Any]) -> str:
    if cand.get("product_url"):
        return cand["product_url"]
    return f"{cand['name'].lower().strip()}|{cand.get('price')}"


def normalize(candidates: Iterable[Dict[str, Any]], website) -> List[Product]:
    """
    Turn raw candidates into the canonical product list: validated, coerced,
    with MRP/price ordered, discount derived, URLs absolute and duplicates
    dropped (first seen wins).
    """
    site = get_site(website)
    out: List[Product] = []
    seen_keys = set()
    seen_names = set()
    for raw in candidates:
        if isinstance(raw, Product):
            raw = raw.model_dump()
        name = clean_name(raw.get("name"))
        if not is_valid_name(name, site.min_name_length, site.blocklist):
            continue
        price = coerce_price(raw.get("price"))
        mrp = coerce_price(raw.get("mrp"))
        if price is None and mrp is not None:
            # a lone amount is the selling price
            price, mrp = mrp, None
        if price is not None and mrp is not None and mrp < price:
            price, mrp = mrp, price

        product_url = apply_url_fixups(_absolute(raw.get("product_url"), site), site.url_fixups)
        image_url = clean_image_url(_absolute(raw.get("image_url"), site))

        cand = {"name": name, "price": price, "product_url": product_url}
        if not passes_gate(cand, site.min_name_length, site.blocklist):
            continue
        key = dedup_key(cand)
        if key in seen_keys or name.lower() in seen_names:
            continue
        seen_keys.add(key)
        seen_names.add(name.lower())

        discount, discount_amount = discount_fields(price, mrp)
        out.append(Product(
            name=name,
            price=price,
            mrp=mrp,
            discount=discount,
            discount_amount=discount_amount,
            is_out_of_stock=bool(raw.get("is_out_of_stock")) or text_says_out_of_stock(name),
            image_url=image_url,
            product_url=product_url,
        ))
    logger.debug("%s: normalized %d products", site.key, len(out))
    return out
