from sqlalchemy import Column, String, Text, Numeric, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from app.db.database import Base


class TaxRate(Base):
    __tablename__ = "tax_rates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    rate = Column(Numeric(5, 2), nullable=False)  # percent, e.g. 12.00
    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
