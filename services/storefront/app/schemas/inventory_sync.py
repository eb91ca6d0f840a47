from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal
from uuid import UUID
from datetime import datetime

from app.schemas.common import CamelModel


class LegacyInventoryRecord(CamelModel):
    """One (product, site) row from the legacy inventory system"""
    barcode: str = ""
    product_code: str = ""
    name: str = ""
    retail_price: float = 0
    on_hand_quantity: float = 0
    base_unit_code: str = "PC"
    category_name: str = "Uncategorized"
    category_id: str = ""
    site_code: str = ""
    site_name: str = ""


class LegacySite(CamelModel):
    code: str = Field(..., description="Legacy site code", examples=["007"])
    name: str = Field(..., description="Site name", examples=["Santiago Branch"])


class RecordOutcome(BaseModel):
    """What the upsert cascade did for a single legacy record

    None means the step was not reached (an earlier step failed).
    """
    site_created: Optional[bool] = None
    category_created: Optional[bool] = None
    product_created: Optional[bool] = None
    inventory_created: Optional[bool] = None


class SyncStats(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    total_fetched: int = 0
    products_created: int = 0
    products_updated: int = 0
    inventories_created: int = 0
    inventories_updated: int = 0
    categories_created: int = 0
    sites_created: int = 0
    errors: int = 0

    def tally(self, outcome: RecordOutcome) -> "SyncStats":
        """Return new stats with the completed steps of one record added"""
        return self.model_copy(update={
            "sites_created": self.sites_created + int(outcome.site_created is True),
            "categories_created": self.categories_created + int(outcome.category_created is True),
            "products_created": self.products_created + int(outcome.product_created is True),
            "products_updated": self.products_updated + int(outcome.product_created is False),
            "inventories_created": self.inventories_created + int(outcome.inventory_created is True),
            "inventories_updated": self.inventories_updated + int(outcome.inventory_created is False),
        })

    def with_error(self) -> "SyncStats":
        return self.model_copy(update={"errors": self.errors + 1})


class ProgressEvent(CamelModel):
    type: Literal["progress", "complete", "error"]
    current: int
    total: int
    message: str
    stats: Optional[SyncStats] = None
    errors: Optional[List[str]] = None

    def to_sse(self) -> str:
        """Server-sent event frame: `data: <json>` followed by a blank line"""
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class SyncSummary(CamelModel):
    """Final result of a completed sync run"""
    site_code: str
    stats: SyncStats
    errors: List[str] = []


class SyncRequest(CamelModel):
    site_code: Optional[str] = Field(None, description="Legacy site code to sync", examples=["007"])


class SyncRunResponse(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    site_code: str
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    stats: Optional[dict] = None
    errors: Optional[List[str]] = None
    error_message: Optional[str] = None
