from sqlalchemy import Column, String, Text, Numeric, DateTime, Boolean, ForeignKey
from licita.core.clock import utcnow
from licita.models.base import Base, new_id

class Bidding(Base):
    __tablename__ = "biddings"

    id = Column(String(36), primary_key=True, default=new_id)
    public_entity_id = Column(String(36), ForeignKey("public_entities.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    bidding_number = Column(String, nullable=False, unique=True, index=True)
    type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="DRAFT", index=True)
    estimated_value = Column(Numeric(15, 2))
    opening_date = Column(DateTime(timezone=True), nullable=False)
    closing_date = Column(DateTime(timezone=True), nullable=False)
    delivery_deadline = Column(DateTime(timezone=True), nullable=False)
    delivery_location = Column(String)
    is_public = Column(Boolean, nullable=False, default=True)
    requirements = Column(Text)
    evaluation_criteria = Column(Text)
    published_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
