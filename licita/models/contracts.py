from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey
from licita.core.clock import utcnow
from licita.models.base import Base, new_id

class Contract(Base):
    __tablename__ = "contracts"

    id = Column(String(36), primary_key=True, default=new_id)
    bidding_id = Column(String(36), ForeignKey("biddings.id"), nullable=False, index=True)
    proposal_id = Column(String(36), ForeignKey("proposals.id"), nullable=False, unique=True)
    public_entity_id = Column(String(36), ForeignKey("public_entities.id"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False, index=True)
    contract_number = Column(String, nullable=False, unique=True)
    title = Column(String)
    description = Column(Text)
    total_value = Column(Numeric(15, 2), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default="DRAFT")
    signed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
