import pytest

from scout.errors import UnknownWebsite
from scout.sites import SITES, concurrent_sites, get_site, sequential_sites, site_for_filename, site_for_url


@pytest.mark.parametrize("ident,key", [
    ("dmart", "dmart"),
    ("D-Mart", "dmart"),
    ("JioMart", "jiomart"),
    ("jeomart", "jiomart"),
    ("Nature's Basket", "naturesbasket"),
    ("ZEPTO", "zepto"),
    ("swiggy", "swiggy"),
    ("Instamart", "swiggy"),
    (" swiggy instamart ", "swiggy"),
])
def test_get_site_aliases(ident, key):
    assert get_site(ident).key == key


def test_get_site_unknown():
    with pytest.raises(UnknownWebsite) as exc:
        get_site("amazon")
    assert isinstance(exc.value, ValueError)
    assert exc.value.website == "amazon"
    with pytest.raises(UnknownWebsite):
        get_site(None)


def test_get_site_passes_configs_through():
    assert get_site(SITES["zepto"]) is SITES["zepto"]


@pytest.mark.parametrize("url,key", [
    ("https://www.zepto.com/search?query=milk", "zepto"),
    ("https://www.naturesbasket.co.in/product-detail/x", "naturesbasket"),
    ("https://www.swiggy.com/instamart/item/abc", "swiggy"),
])
def test_site_for_url(url, key):
    assert site_for_url(url).key == key


def test_site_for_url_unknown():
    assert site_for_url("https://www.amazon.in/x") is None


@pytest.mark.parametrize("filename,key", [
    ("swiggy-tomato-20240101.html", "swiggy"),
    ("instamart-tomato.html", "swiggy"),
    ("jiomart-tomato.html", "jiomart"),
    ("dmart-tomato.html", "dmart"),
    ("naturesbasket-tomato.html", "naturesbasket"),
])
def test_site_for_filename(filename, key):
    assert site_for_filename(filename).key == key


def test_phases():
    assert [s.key for s in concurrent_sites()] == ["dmart", "jiomart", "naturesbasket", "zepto"]
    assert [s.key for s in sequential_sites()] == ["swiggy"]


def test_search_url_is_quoted():
    assert get_site("zepto").search_url_for("amul butter") == "https://www.zepto.com/search?query=amul+butter"


def test_configs_are_immutable():
    with pytest.raises(Exception):
        SITES["zepto"].min_name_length = 1
    with pytest.raises(TypeError):
        SITES["amazon"] = SITES["zepto"]
