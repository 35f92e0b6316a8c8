from conftest import page
from scout.adapters.adapter_jiomart import clean_jiomart_name, fuzzy_url
from scout.extractor import extract_page, extract_products

DMART_CARD = page("""
<div class="vertical-card_card-vertical__Q8seS vertical-card_no-stock__3G_E0">
  <div class="vertical-card_image__1" style="background-image: url('https://cdn.dmart.in/images/products/ghee.jpg?w=200&amp;tracking=1'), url('/misc/NoImage.png')"></div>
  <div class="vertical-card_title__2">Amul Pure Ghee 1 L</div>
  <div class="price-container"><span class="price-label">MRP</span><span class="price-amount">₹ 290</span></div>
  <div class="price-container"><span class="price-label">DMart</span><span class="price-amount">₹ 265</span></div>
  <div class="price-container"><span class="price-label">OFF</span><span class="price-amount">₹ 25</span></div>
  <a href="/amul-pure-ghee-1-l">View</a>
</div>
""")

JIOMART_CARD = page("""
<ul><li class="ais-InfiniteHits-item"><div class="plp-card-container">
  <a href="/p/groceries/tata-salt-1-kg/490000363" class="plp-card-wrapper">
    <div class="plp-card-image"><img src="https://www.jiomart.com/images/product/150x150/490000363/tata-salt.jpg?w=150&amp;im=Resize" alt="Tata Salt 1 kg"></div>
    <div class="plp-card-details-name">Tata Salt 1 kg</div>
    <div class="plp-card-details-price"><span class="jm-heading-xxs">₹25.00</span><span class="line-through">₹28.00</span></div>
    <span class="jm-badge">10% OFF</span>
  </a>
</div></li></ul>
""")

NATURESBASKET_TILE = page("""
<div class="product-tile out-of-stock">
  <a href="/product-detail/organic-almonds-250g"><img src="/media/almonds.jpg" alt="Organic Almonds"><h3>Organic Almonds 250g</h3></a>
  <div class="price"><span class="selling">₹349</span><span class="mrp">₹399</span></div>
  <button>Notify Me</button>
</div>
""")

ZEPTO_ANCHOR = page("""
<a href="/pn/amul-taaza-toned-milk-500-ml/pvid/abc" class="product-card-link">
  <div><img src="https://cdn.zeptonow.com/production/milk.jpg?tr=w-200" alt="Amul Taaza Toned Milk 500 ml"></div>
  <div><span>₹27</span><span class="line-through">₹28</span></div>
  <div><img src="/badge.png" alt="P3"></div>
</a>
""")

ZEPTO_SLOTS = page("""
<div class="c1">
  <div data-slot-id="ProductName"><span>Onion 1 kg</span></div>
  <div data-slot-id="Price"><span>₹35</span></div>
</div>
""")

INSTAMART_STATE = page(
    "<div>loading</div>",
    head=(
        '<script>window.___INITIAL_STATE___ = {"searchPLV2": {"data": {"items": [{'
        '"name": "Fresh Tomato (Local)", "slug": "fresh-tomato-local", '
        '"variations": [{"price": {"offer_price": 32, "mrp": 40}, '
        '"images": ["https://instamart-media-assets.swiggy.com/tomato.png?w=100&sig=z"]}]}]}}, '
        '"userLocation": {"address": "Koramangala, Bengaluru"}};</script>'
    ),
)

INSTAMART_CARDS = page("""
<div data-testid="item-collection-card-full">
  <div class="sc-title">Amul Masti Buttermilk 200 ml</div>
  <div><span>₹45</span><span>₹52</span></div>
  <a href="/item/amul-masti-xyz">open</a>
</div>
<a href="/instamart/item/coriander-leaves-100g" aria-label="Coriander Leaves 100g"><div><span>₹12</span></div></a>
""")


def test_dmart_labelled_card():
    [p] = extract_products(DMART_CARD, "dmart")
    assert p.name == "Amul Pure Ghee 1 L"
    assert (p.price, p.mrp, p.discount, p.discount_amount) == (265.0, 290.0, 9.0, 25.0)
    assert p.is_out_of_stock
    assert p.image_url == "https://cdn.dmart.in/images/products/ghee.jpg?w=200"
    assert p.product_url == "https://www.dmart.in/amul-pure-ghee-1-l"


def test_jiomart_card():
    [p] = extract_products(JIOMART_CARD, "jiomart")
    assert p.name == "Tata Salt 1 kg"
    assert (p.price, p.mrp, p.discount) == (25.0, 28.0, 11.0)
    assert p.product_url == "https://www.jiomart.com/p/groceries/tata-salt-1-kg/490000363"
    assert p.image_url == "https://www.jiomart.com/images/product/150x150/490000363/tata-salt.jpg?w=150"
    assert not p.is_out_of_stock


def test_jiomart_url_from_side_channel():
    html = page(
        '<div class="plp-card-container"><div class="plp-card-details-name">'
        "Aashirvaad Shudh Chakki Atta 5 kg</div><span>₹245</span></div>"
    )
    url_map = {"Aashirvaad Shudh Chakki Atta 5 kg Pack": "/p/groceries/aashirvaad-atta/123"}
    [p] = extract_products(html, "jiomart", url_map)
    assert p.product_url == "https://www.jiomart.com/p/groceries/aashirvaad-atta/123"


def test_clean_jiomart_name():
    assert clean_jiomart_name("Tata Salt 1 kg ₹25.00 8% OFF Add") == "Tata Salt 1 kg"
    assert clean_jiomart_name("") is None


def test_fuzzy_url_needs_two_words():
    url_map = {"Fortune Sunlite Refined Sunflower Oil 1 L": "/p/x"}
    assert fuzzy_url(url_map, "Fortune Sunflower Oil Pouch") == "/p/x"
    assert fuzzy_url(url_map, "Fortune Basmati Rice") is None


def test_naturesbasket_tile():
    [p] = extract_products(NATURESBASKET_TILE, "naturesbasket")
    assert p.name == "Organic Almonds 250g"
    assert (p.price, p.mrp) == (349.0, 399.0)
    assert p.is_out_of_stock
    assert p.product_url == "https://www.naturesbasket.co.in/product-detail/organic-almonds-250g"
    assert p.image_url == "https://www.naturesbasket.co.in/media/almonds.jpg"


def test_zepto_image_card():
    [p] = extract_products(ZEPTO_ANCHOR, "zepto")
    assert p.name == "Amul Taaza Toned Milk 500 ml"
    assert (p.price, p.mrp) == (27.0, 28.0)
    assert p.product_url == "https://www.zepto.com/pn/amul-taaza-toned-milk-500-ml/pvid/abc"
    assert p.image_url == "https://cdn.zeptonow.com/production/milk.jpg"


def test_zepto_slots():
    [p] = extract_products(ZEPTO_SLOTS, "zepto")
    assert (p.name, p.price, p.mrp) == ("Onion 1 kg", 35.0, None)


def test_zepto_url_map_backfill():
    html = page('<div class="product"><h3>Lays Classic 52g</h3><span>₹20</span></div>')
    [p] = extract_products(html, "zepto", {"Lays Classic 52g": "/pn/lays-classic/pvid/1"})
    assert p.product_url == "https://www.zepto.com/pn/lays-classic/pvid/1"


def test_instamart_state():
    result = extract_page(INSTAMART_STATE, "swiggy", query="tomato")
    [p] = result.products
    assert p.name == "Fresh Tomato (Local)"
    assert (p.price, p.mrp, p.discount, p.discount_amount) == (32.0, 40.0, 20.0, 8.0)
    assert p.product_url == "https://www.swiggy.com/instamart/item/fresh-tomato-local"
    assert p.image_url == "https://instamart-media-assets.swiggy.com/tomato.png?w=100"
    assert result.location == "Koramangala, Bengaluru"


def test_instamart_cards_and_item_links():
    products = extract_products(INSTAMART_CARDS, "swiggy")
    assert [p.name for p in products] == ["Amul Masti Buttermilk 200 ml", "Coriander Leaves 100g"]
    masti, coriander = products
    assert (masti.price, masti.mrp) == (45.0, 52.0)
    assert masti.product_url == "https://www.swiggy.com/instamart/item/amul-masti-xyz"
    assert coriander.price == 12.0
    assert coriander.product_url == "https://www.swiggy.com/instamart/item/coriander-leaves-100g"
