import asyncio

import orjson
import pytest

from conftest import page
from scout.config import Settings
from scout.errors import FetchError
from scout.fetcher import is_error_page, url_map_from_links
from scout.scrape import extract_dir, extract_site, main, resolve_sites, run_all
from scout.sites import get_site

LAYS = page('<div class="product"><h3>Lays Classic 52g</h3><span>₹20</span><del>₹25</del></div>')
LOCATED = page(
    '<header><span class="header-address">Delivering to: Andheri West</span></header>'
    '<div class="product"><h3>Lays Classic 52g</h3><span>₹20</span></div>'
)


def test_extract_site_success():
    outcome = extract_site(LAYS, "zepto", "lays")
    assert outcome.success and outcome.error is None
    assert outcome.website == "Zepto"
    assert outcome.data.total_products == 1


def test_extract_site_failures_are_soft():
    bad_site = extract_site(LAYS, "amazon")
    assert not bad_site.success
    assert "amazon" in bad_site.error
    empty = extract_site("", "zepto")
    assert not empty.success
    assert empty.data is None


def test_resolve_sites_keeps_registry_order():
    assert [s.key for s in resolve_sites(["swiggy", "dmart"])] == ["dmart", "swiggy"]
    assert len(resolve_sites()) == 5


def test_run_all_isolates_failures():
    calls = []

    async def fake_fetch(site, query):
        calls.append(site.key)
        if site.key == "jiomart":
            raise FetchError("JioMart: timed out")
        html = LOCATED if site.key == "zepto" else LAYS
        return html, {}

    summary = asyncio.run(run_all("lays", fetch=fake_fetch, settings=Settings()))
    assert summary.success
    assert [o.website for o in summary.websites] == ["DMart", "JioMart", "naturesbasket", "Zepto", "swiggy"]
    assert calls[-1] == "swiggy"
    jio = summary.websites[1]
    assert not jio.success and "timed out" in jio.error
    assert summary.summary.success_count == 4
    assert summary.summary.failed_count == 1
    assert summary.summary.total_products == 4
    assert summary.location == "Andheri West"


def test_run_all_every_site_failing():
    async def broken(site, query):
        raise FetchError("offline")

    summary = asyncio.run(run_all("lays", ["zepto", "dmart"], fetch=broken, settings=Settings()))
    assert not summary.success
    assert summary.summary.total_websites == 2
    assert summary.summary.total_products == 0
    assert summary.location is None


def test_run_all_saves_artifacts(tmp_path):
    async def fake_fetch(site, query):
        return LAYS, {}

    settings = Settings(SCOUT_OUTPUT_DIR=tmp_path, SCOUT_SAVE_ARTIFACTS=True)
    asyncio.run(run_all("lays", ["zepto"], fetch=fake_fetch, settings=settings))
    assert len(list(tmp_path.glob("zepto-lays-*.html"))) == 1
    [saved] = tmp_path.glob("zepto-lays-*.json")
    assert orjson.loads(saved.read_bytes())["totalProducts"] == 1
    [entry] = (tmp_path / "scrape-log.jsonl").read_bytes().splitlines()
    logged = orjson.loads(entry)
    assert logged["website"] == "zepto"
    assert logged["success"] is True
    assert logged["filename"] == saved.name


def test_unwritable_output_dir_does_not_abort_run(tmp_path, caplog):
    async def fake_fetch(site, query):
        return LAYS, {}

    not_a_dir = tmp_path / "output"
    not_a_dir.write_text("occupied", encoding="utf-8")
    settings = Settings(SCOUT_OUTPUT_DIR=not_a_dir, SCOUT_SAVE_ARTIFACTS=True)
    summary = asyncio.run(run_all("lays", ["zepto", "dmart"], fetch=fake_fetch, settings=settings))
    assert summary.success
    assert summary.summary.success_count == 2
    assert summary.summary.total_products == 2
    assert "could not save artifacts" in caplog.text


def test_extract_dir_and_cli(tmp_path, capsys):
    (tmp_path / "zepto-lays.html").write_text(LAYS, encoding="utf-8")
    (tmp_path / "dmart-lays.html").write_text(LAYS, encoding="utf-8")
    (tmp_path / "notes.html").write_text(LAYS, encoding="utf-8")

    summary = extract_dir(tmp_path, "lays")
    assert [o.website for o in summary.websites] == ["DMart", "Zepto"]
    assert summary.websites[0].data.filename == "dmart-lays.html"

    assert main(["extract", str(tmp_path), "--product", "lays", "--json"]) == 0
    data = orjson.loads((tmp_path / "extracted-data.json").read_bytes())
    assert data["summary"]["totalProducts"] == 2
    assert "[DONE] 2/2 sites" in capsys.readouterr().out


def test_cli_rejects_missing_directory(tmp_path):
    with pytest.raises(SystemExit):
        main(["extract", str(tmp_path / "missing")])


def test_url_map_from_links():
    links = [
        {"href": "/pn/amul-taaza-toned-milk-500-ml", "title": "", "text": "Amul Taaza Toned Milk 500 ml Pouch"},
        {"href": "/pn/other", "title": "", "text": "Amul Taaza Toned Milk 500 ml Pouch"},
        {"href": "/pn/x", "title": "Milk", "text": ""},
        {"href": "#", "title": "Lays Classic 52g", "text": ""},
    ]
    url_map = url_map_from_links(links, get_site("zepto"))
    assert url_map == {
        "Amul Taaza Toned Milk 500 ml Pouch": "https://www.zepto.com/pn/amul-taaza-toned-milk-500-ml",
        "Amul Taaza Toned Milk 500": "https://www.zepto.com/pn/amul-taaza-toned-milk-500-ml",
    }


def test_is_error_page():
    assert is_error_page("Oops! Something went wrong. Please try again")
    assert not is_error_page("Amul Butter 500g ₹275")
    assert not is_error_page("")
