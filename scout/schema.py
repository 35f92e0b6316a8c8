from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ScoutModel(BaseModel):
    # camelCase on the wire, snake_case in Python; either is accepted on input
    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Product(ScoutModel):
    name: str
    price: Optional[float] = None
    mrp: Optional[float] = None
    discount: Optional[float] = None               # percent off MRP
    discount_amount: Optional[float] = Field(default=None, alias="discountAmount")
    is_out_of_stock: bool = Field(default=False, alias="isOutOfStock")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    product_url: Optional[str] = Field(default=None, alias="productUrl")


class SiteResult(ScoutModel):
    website: str                                   # display name, e.g. "Zepto"
    location: Optional[str] = None
    product: str = ""                              # the search query
    timestamp: str
    filename: Optional[str] = None
    products: List[Product] = Field(default_factory=list)
    total_products: int = Field(default=0, alias="totalProducts")


class SiteOutcome(ScoutModel):
    website: str
    success: bool
    error: Optional[str] = None
    duration: float = 0.0                          # seconds
    data: Optional[SiteResult] = None


class Summary(ScoutModel):
    total_websites: int = Field(alias="totalWebsites")
    success_count: int = Field(alias="successCount")
    failed_count: int = Field(alias="failedCount")
    total_products: int = Field(alias="totalProducts")


class ScrapeSummary(ScoutModel):
    success: bool
    product: str
    location: Optional[str] = None
    timestamp: str
    total_duration: float = Field(alias="totalDuration")
    summary: Summary
    websites: List[SiteOutcome] = Field(default_factory=list)
