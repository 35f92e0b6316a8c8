import pytest
from bs4 import BeautifulSoup

from conftest import page
from scout.errors import ParseFailure
from scout.extractor import extract_candidates, extract_page, extract_products
from scout.sites import SITES
from scout.urls import is_absolute_url
from scout.validation import BLOCKLIST

ALL_SITES = sorted(SITES)

LAYS = page('<div class="product"><h3>Lays Classic 52g</h3><span>₹20</span><del>₹25</del></div>')
STATE_ONLY = page(
    '<script>window.__STATE__={"items":[{"id":"1","name":"Tomato 1kg","price":40}]}</script>'
    "<div>Nothing to see</div>"
)
GRID = page("""
<div class="grid">
  <div class="product-card"><a href="/p/amul-butter"><h3>Amul Butter 500g</h3></a>
    <span>₹275</span><span class="strike">₹290</span></div>
  <div class="product-card"><a href="/p/amul-butter"><h3>amul butter 500G</h3></a>
    <span>₹275</span></div>
  <div class="product-card"><h3>Tata Salt 1kg</h3><span>₹28</span><span>₹25</span></div>
  <div class="product-card"><h4>Add to Cart</h4><span>₹10</span></div>
  <div class="product-card"><a href="//cdn.dmart.in/fortune-oil"><h3>Fortune Oil 1L</h3></a>
    <del>₹150</del><span>₹180</span><img src="/images/fortune.jpg?w=100&amp;utm=x" alt="Fortune"></div>
</div>
""")


@pytest.mark.parametrize("website", ALL_SITES)
def test_card_with_struck_mrp(website):
    [product] = extract_products(LAYS, website)
    assert product.to_json_dict() == {
        "name": "Lays Classic 52g",
        "price": 20.0,
        "mrp": 25.0,
        "discount": 20.0,
        "discountAmount": 5.0,
        "isOutOfStock": False,
        "imageUrl": None,
        "productUrl": None,
    }


@pytest.mark.parametrize("website", ALL_SITES)
def test_embedded_state_without_markup(website):
    [product] = extract_products(STATE_ONLY, website)
    assert product.name == "Tomato 1kg"
    assert product.price == 40.0
    assert product.mrp is None


def test_same_url_collapses_to_first_name():
    html = page("""
    <div class="tile"><a href="/product-detail/lays-classic"><h3>Lays Classic Salted</h3></a><span>₹20</span></div>
    <div class="tile"><a href="/product-detail/lays-classic"><h3>LAYS CLASSIC salted</h3></a><span>₹20</span></div>
    """)
    products = extract_products(html, "naturesbasket")
    assert [p.name for p in products] == ["Lays Classic Salted"]
    assert products[0].product_url == "https://www.naturesbasket.co.in/product-detail/lays-classic"


@pytest.mark.parametrize("website", ALL_SITES)
def test_delivery_banner_is_not_a_product(website):
    html = page('<div class="offer"><p>FREE DELIVERY on orders above ₹199</p></div>')
    assert extract_products(html, website) == []


@pytest.mark.parametrize("website", ALL_SITES)
def test_truncated_html_gives_empty_list(website):
    assert extract_products("<div class='product'><h3>Lays", website) == []


@pytest.mark.parametrize("doc", ["", "   \n", None, 42, b"\xff\xfe\xfa"])
def test_unparseable_input_raises(doc):
    with pytest.raises(ParseFailure):
        extract_products(doc, "zepto")


def test_accepts_parsed_document():
    soup = BeautifulSoup(LAYS, "lxml")
    assert [p.name for p in extract_products(soup, "dmart")] == ["Lays Classic 52g"]


def test_accepts_bytes():
    assert [p.name for p in extract_products(LAYS.encode("utf-8"), "jiomart")] == ["Lays Classic 52g"]


def test_extraction_is_idempotent():
    first = [p.to_json_dict() for p in extract_products(GRID, "dmart")]
    second = [p.to_json_dict() for p in extract_products(GRID, "dmart")]
    assert first == second


def test_grid_invariants():
    products = extract_products(GRID, "dmart")
    names = [p.name for p in products]
    assert names == ["Amul Butter 500g", "Tata Salt 1kg", "Fortune Oil 1L"]

    urls = [p.product_url for p in products if p.product_url]
    assert len(urls) == len(set(urls))
    for p in products:
        if p.price is not None and p.mrp is not None:
            assert p.mrp >= p.price
        for url in (p.product_url, p.image_url):
            assert url is None or is_absolute_url(url)
        assert p.name.lower() not in BLOCKLIST

    amul, salt, oil = products
    assert (amul.price, amul.mrp, amul.discount) == (275.0, 290.0, 5.0)
    assert amul.product_url == "https://www.dmart.in/p/amul-butter"
    assert (salt.price, salt.mrp) == (25.0, 28.0)
    # struck amount below the selling price: swapped
    assert (oil.price, oil.mrp) == (150.0, 180.0)
    assert oil.product_url == "https://cdn.dmart.in/fortune-oil"
    assert oil.image_url == "https://www.dmart.in/images/fortune.jpg?w=100"


def test_cascade_stops_at_first_accepted_strategy():
    # the embedded payload wins; the DOM card is never consulted
    html = page(
        '<script>window.__STATE__={"items":[{"id":"t1","name":"Tomato 1kg","price":40}]}</script>'
        '<div class="product"><h3>Lays Classic 52g</h3><span>₹20</span></div>'
    )
    assert [c["name"] for c in extract_candidates(html, "zepto")] == ["Tomato 1kg"]


def test_extract_page_envelope():
    result = extract_page(LAYS, "Instamart", query="lays")
    assert result.website == "swiggy"
    assert result.product == "lays"
    assert result.total_products == len(result.products) == 1
    assert result.filename.startswith("swiggy-lays-")


def test_state_objects_without_identifier_are_ignored():
    html = page(
        '<script>window.__STATE__={"data":{"title":"Summer Sale Banner","price":99}}</script>'
        '<div class="product"><h3>Lays Classic 52g</h3><span>₹20</span></div>'
    )
    assert [p.name for p in extract_products(html, "zepto")] == ["Lays Classic 52g"]
