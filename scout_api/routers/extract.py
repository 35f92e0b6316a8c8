import time
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from scout.errors import UnknownWebsite
from scout.schema import ScrapeSummary, SiteOutcome
from scout.scrape import extract_site, run_all, summarize
from scout.sites import get_site

router = APIRouter()

MIN_QUERY_LENGTH = 2


class ExtractRequest(BaseModel):
    website: str
    html: str
    product: str = ""
    product_urls: Optional[Dict[str, str]] = Field(default=None, alias="productUrls")


class PageIn(BaseModel):
    website: str
    html: str
    product_urls: Optional[Dict[str, str]] = Field(default=None, alias="productUrls")


class BatchRequest(BaseModel):
    product: str = ""
    pages: List[PageIn]


class ScrapeRequest(BaseModel):
    product: Optional[str] = None
    location: Optional[str] = None
    websites: Optional[List[str]] = None


def _check_website(website: str):
    try:
        return get_site(website)
    except UnknownWebsite as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/extract", response_model=SiteOutcome, response_model_by_alias=True)
def extract(body: ExtractRequest):
    site = _check_website(body.website)
    return extract_site(body.html, site, body.product, body.product_urls)


@router.post("/extract/batch", response_model=ScrapeSummary, response_model_by_alias=True)
def extract_batch(body: BatchRequest):
    sites = [_check_website(page.website) for page in body.pages]
    started = time.perf_counter()
    outcomes = [
        extract_site(page.html, site, body.product, page.product_urls)
        for page, site in zip(body.pages, sites)
    ]
    return summarize(body.product, outcomes, started)


@router.post("/scrape", response_model=ScrapeSummary, response_model_by_alias=True)
async def scrape(body: ScrapeRequest):
    product = (body.product or "").strip()
    if len(product) < MIN_QUERY_LENGTH:
        raise HTTPException(status_code=400, detail="product must be at least 2 characters")
    for website in body.websites or ():
        _check_website(website)
    # location is echoed only; selecting it on the site is out of scope
    summary = await run_all(product, body.websites)
    if body.location and not summary.location:
        summary.location = body.location
    return summary
