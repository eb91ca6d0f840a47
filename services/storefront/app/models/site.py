from sqlalchemy import Column, String, Text, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from app.db.database import Base


class Site(Base):
    """Physical store or warehouse, keyed by the legacy system's site code"""
    __tablename__ = "sites"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="STORE")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    inventories = relationship("Inventory", back_populates="site")
