from pydantic import Field

from app.schemas.common import CamelModel


class TaxRateInfo(CamelModel):
    id: str = Field("", description="Tax rate id, empty for the built-in fallback")
    name: str = Field(..., examples=["VAT 12%"])
    code: str = Field(..., examples=["VAT12"])
    rate: float = Field(..., description="Percentage rate", examples=[12.0])


class TaxCalculateRequest(CamelModel):
    amount: float = Field(..., ge=0, examples=[900])


class TaxCalculation(CamelModel):
    tax_rate: TaxRateInfo
    tax_amount: float
