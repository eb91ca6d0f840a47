from sqlalchemy.orm import Session
from decimal import Decimal
import logging

from app.config import settings
from app.models.tax_rate import TaxRate
from app.schemas.tax import TaxRateInfo, TaxCalculation

logger = logging.getLogger(__name__)


def fallback_tax_rate() -> TaxRateInfo:
    """Built-in rate used when no tax rate row can be read"""
    return TaxRateInfo(
        id="",
        name=settings.fallback_tax_name,
        code=settings.fallback_tax_code,
        rate=settings.fallback_tax_rate
    )


def _to_info(tax_rate: TaxRate) -> TaxRateInfo:
    return TaxRateInfo(
        id=str(tax_rate.id),
        name=tax_rate.name,
        code=tax_rate.code,
        rate=float(tax_rate.rate)
    )


class TaxService:
    """Service layer for checkout tax"""

    def __init__(self, db: Session):
        self.db = db

    def get_default_tax_rate(self) -> TaxRateInfo:
        """Default active rate, else the VAT12 row, else the built-in 12%

        Checkout must always get a rate, so database errors fall through to
        the built-in value instead of propagating.
        """
        try:
            tax_rate = self.db.query(TaxRate).filter(
                TaxRate.is_default.is_(True),
                TaxRate.is_active.is_(True)
            ).first()
            if tax_rate:
                return _to_info(tax_rate)

            tax_rate = self.db.query(TaxRate).filter(
                TaxRate.code == settings.fallback_tax_code
            ).first()
            if tax_rate:
                return _to_info(tax_rate)

            return fallback_tax_rate()
        except Exception as e:
            logger.error(f"Error fetching tax rate: {e}", exc_info=True)
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.warning(f"Rollback after tax lookup failure failed: {rollback_error}")
            return fallback_tax_rate()

    def calculate_tax(self, amount: float) -> TaxCalculation:
        tax_rate = self.get_default_tax_rate()
        return TaxCalculation(
            tax_rate=tax_rate,
            tax_amount=compute_tax(amount, tax_rate)
        )


def compute_tax(amount: float, tax_rate: TaxRateInfo) -> float:
    """amount * rate / 100"""
    return float(Decimal(str(amount)) * Decimal(str(tax_rate.rate)) / 100)
