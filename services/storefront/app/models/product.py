from sqlalchemy import Column, String, Text, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from app.db.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    barcode = Column(String(100), nullable=False, unique=True)
    sku = Column(String(100), nullable=False)
    name = Column(Text, nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    base_uom = Column(String(20), nullable=False, default="PC")
    retail_price = Column(Numeric(12, 2), nullable=False, default=0)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"))
    legacy_product_code = Column(String(100))
    is_active = Column(Boolean, nullable=False, default=True)
    is_published = Column(Boolean, nullable=False, default=False)
    last_synced_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("retail_price >= 0", name="non_negative_price"),
        Index("idx_product_category", "category_id"),
    )

    category = relationship("Category")
    inventories = relationship("Inventory", back_populates="product")
