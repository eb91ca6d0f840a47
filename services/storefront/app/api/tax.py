from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.database import get_db
from app.schemas.tax import TaxRateInfo, TaxCalculateRequest, TaxCalculation
from app.services.tax_service import TaxService

router = APIRouter(
    prefix="/tax",
    tags=["Tax"]
)


def get_tax_service(db: Session = Depends(get_db)) -> TaxService:
    """Dependency to get tax service"""
    return TaxService(db)


@router.get(
    "/default",
    response_model=TaxRateInfo,
    summary="Default tax rate",
    description="""
    The active default rate; otherwise the `VAT12` rate; otherwise a built-in
    12% VAT. Always answers.
    """
)
def get_default_tax_rate(tax_service: TaxService = Depends(get_tax_service)):
    return tax_service.get_default_tax_rate()


@router.post(
    "/calculate",
    response_model=TaxCalculation,
    summary="Tax on an amount at the default rate"
)
def calculate_tax(
    request: TaxCalculateRequest,
    tax_service: TaxService = Depends(get_tax_service)
):
    return tax_service.calculate_tax(request.amount)
