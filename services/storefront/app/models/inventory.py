from sqlalchemy import Column, Numeric, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from app.db.database import Base


class Inventory(Base):
    """On-hand stock of one product at one site

    Rows are written by the legacy inventory sync. available_qty mirrors
    quantity there; reserved_qty is only set on creation.
    """
    __tablename__ = "inventories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    site_id = Column(Uuid(as_uuid=True), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False, default=0)
    reserved_qty = Column(Numeric(12, 3), nullable=False, default=0)
    available_qty = Column(Numeric(12, 3), nullable=False, default=0)
    last_synced_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("product_id", "site_id", name="uq_inventory_product_site"),
    )

    product = relationship("Product", back_populates="inventories")
    site = relationship("Site", back_populates="inventories")
