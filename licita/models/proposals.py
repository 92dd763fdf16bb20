from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from licita.core.clock import utcnow
from licita.models.base import Base, new_id

class Proposal(Base):
    __tablename__ = "proposals"
    __table_args__ = (UniqueConstraint("bidding_id", "supplier_id", name="uq_proposal_bidding_supplier"),)

    id = Column(String(36), primary_key=True, default=new_id)
    bidding_id = Column(String(36), ForeignKey("biddings.id"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False, index=True)
    total_value = Column(Numeric(15, 2), nullable=False, default=0)
    description = Column(Text)
    notes = Column(Text)
    status = Column(String, nullable=False, default="DRAFT")
    submitted_at = Column(DateTime(timezone=True))
    valid_until = Column(DateTime(timezone=True))
    # итог оценки заказчиком
    evaluation = Column(Text)
    score = Column(Numeric(5, 2))
    evaluation_notes = Column(Text)
    evaluated_at = Column(DateTime(timezone=True))
    rejection_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship(
        "ProposalItem",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="ProposalItem.position",
        lazy="selectin",
    )


class ProposalItem(Base):
    __tablename__ = "proposal_items"

    id = Column(String(36), primary_key=True, default=new_id)
    proposal_id = Column(String(36), ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    total_price = Column(Numeric(15, 2), nullable=False)
    brand = Column(String)
    model = Column(String)

    proposal = relationship("Proposal", back_populates="items")
