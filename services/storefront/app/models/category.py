from sqlalchemy import Column, Text, Integer, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from app.db.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Denormalized; maintained by CategoryService.update_category_counts
    item_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
