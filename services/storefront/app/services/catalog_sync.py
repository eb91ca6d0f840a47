"""
Idempotent upserts used by the legacy inventory sync

Every entity is reconciled through get_or_create(), which looks a row up by its
unique key and creates it when missing. Each call commits, so a row created by
an earlier cascade step is visible to the steps that reference it. Lookups are
find-then-create and are not safe to run concurrently for the same key.
"""
from sqlalchemy.orm import Session
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Type, TypeVar
from uuid import UUID
import logging
import re

from app.models import Site, Category, Product, Inventory
from app.schemas.inventory_sync import LegacyInventoryRecord, RecordOutcome

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

PRODUCT_SLUG_MAX_LENGTH = 100

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lowercase and collapse every run of non [a-z0-9] characters into one hyphen"""
    return _NON_ALNUM.sub("-", value.lower())


def product_slug(barcode: str, name: str) -> str:
    # Raw cut at the column width, may end mid-word or on a hyphen
    return f"{barcode}-{slugify(name)}"[:PRODUCT_SLUG_MAX_LENGTH]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordSyncError(Exception):
    """A cascade step failed; `outcome` holds the steps committed before it"""

    def __init__(self, outcome: RecordOutcome, cause: Exception):
        super().__init__(str(cause))
        self.outcome = outcome


@dataclass(frozen=True)
class UpsertResult:
    id: UUID
    created: bool

    @property
    def existed(self) -> bool:
        return not self.created


def get_or_create(
    db: Session,
    model: Type[ModelT],
    lookup: Dict[str, Any],
    defaults: Optional[Dict[str, Any]] = None,
    refresh: Optional[Dict[str, Any]] = None,
) -> Tuple[ModelT, bool]:
    """Fetch the row matching `lookup` or create it

    `defaults` only apply on creation; `refresh` fields are written to an
    existing row (and also used on creation).
    """
    instance = db.query(model).filter_by(**lookup).first()

    if instance is not None:
        if refresh:
            for field, value in refresh.items():
                setattr(instance, field, value)
            db.commit()
        return instance, False

    instance = model(**lookup, **(defaults or {}), **(refresh or {}))
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance, True


def ensure_site(db: Session, code: str, name: str) -> UpsertResult:
    """Site by code; the stored name wins over the legacy one"""
    site, created = get_or_create(
        db, Site,
        lookup={"code": code},
        defaults={"name": name, "type": "STORE", "is_active": True},
    )
    if created:
        logger.info(f"Created site {code} ({name})")
    return UpsertResult(id=site.id, created=created)


def ensure_category(db: Session, name: str) -> UpsertResult:
    """Category by slug derived from the name; never renamed once created"""
    slug = slugify(name)
    category, created = get_or_create(
        db, Category,
        lookup={"slug": slug},
        defaults={"name": name, "is_active": True, "item_count": 0},
    )
    if created:
        logger.info(f"Created category {slug}")
    return UpsertResult(id=category.id, created=created)


def upsert_product(db: Session, record: LegacyInventoryRecord, category_id: UUID) -> UpsertResult:
    """Product by barcode

    Price, naming, unit, category and legacy code follow the legacy system on
    every run; sku, slug and the active/published flags are set once.
    """
    product, created = get_or_create(
        db, Product,
        lookup={"barcode": record.barcode},
        defaults={
            "sku": record.product_code or record.barcode,
            "slug": product_slug(record.barcode, record.name),
            "is_active": True,
            "is_published": True,
        },
        refresh={
            "name": record.name,
            "retail_price": Decimal(str(record.retail_price)),
            "base_uom": record.base_unit_code,
            "category_id": category_id,
            "legacy_product_code": record.product_code,
            "last_synced_at": _utcnow(),
        },
    )
    return UpsertResult(id=product.id, created=created)


def upsert_inventory(db: Session, product_id: UUID, site_id: UUID, quantity: float) -> UpsertResult:
    """Inventory by (product, site); available always mirrors on-hand"""
    on_hand = Decimal(str(quantity))
    inventory, created = get_or_create(
        db, Inventory,
        lookup={"product_id": product_id, "site_id": site_id},
        defaults={"reserved_qty": 0},
        refresh={
            "quantity": on_hand,
            "available_qty": on_hand,
            "last_synced_at": _utcnow(),
        },
    )
    return UpsertResult(id=inventory.id, created=created)


def sync_record(db: Session, record: LegacyInventoryRecord) -> RecordOutcome:
    """Run the Site -> Category -> Product -> Inventory cascade for one record

    The order is fixed: each step needs the id produced by the one before.
    Steps commit as they go, so a failure raises RecordSyncError carrying
    what the completed steps did.
    """
    outcome = RecordOutcome()
    try:
        site = ensure_site(db, record.site_code, record.site_name)
        outcome.site_created = site.created
        category = ensure_category(db, record.category_name)
        outcome.category_created = category.created
        product = upsert_product(db, record, category.id)
        outcome.product_created = product.created
        inventory = upsert_inventory(db, product.id, site.id, record.on_hand_quantity)
        outcome.inventory_created = inventory.created
    except Exception as e:
        raise RecordSyncError(outcome, e) from e

    return outcome
