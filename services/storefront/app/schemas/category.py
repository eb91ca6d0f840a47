from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel
from uuid import UUID
from datetime import datetime

from app.schemas.common import CamelModel


class CategoryResponse(CamelModel):
    id: UUID = Field(..., description="Category UUID", examples=["123e4567-e89b-12d3-a456-426614174000"])
    name: str = Field(..., description="Category name", examples=["Hand Tools & Equipment"])
    slug: str = Field(..., description="Category URL slug", examples=["hand-tools-equipment"])
    item_count: int = Field(..., description="Active, published products in this category", examples=[42])
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Hand Tools & Equipment",
                "slug": "hand-tools-equipment",
                "itemCount": 42,
                "createdAt": "2024-01-15T10:30:00Z"
            }
        }
    )


class CategoryCountResponse(CamelModel):
    categories_updated: int = Field(..., description="Number of active categories recounted")
