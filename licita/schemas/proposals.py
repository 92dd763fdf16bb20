from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

class ProposalItemIn(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    brand: Optional[str] = None
    model: Optional[str] = None


class ProposalCreate(BaseModel):
    bidding_id: str
    description: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[datetime] = None
    items: List[ProposalItemIn] = []
    # только для администратора: подать от имени поставщика
    supplier_id: Optional[str] = None


class ProposalUpdate(BaseModel):
    description: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[datetime] = None
    items: Optional[List[ProposalItemIn]] = None


class ProposalEvaluation(BaseModel):
    evaluation: Optional[str] = None
    score: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class ProposalRejection(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class ProposalItemOut(BaseModel):
    id: str
    position: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    brand: Optional[str] = None
    model: Optional[str] = None

    class Config:
        from_attributes = True


class ProposalDetail(BaseModel):
    id: str
    bidding_id: str
    supplier_id: str
    total_value: Decimal
    description: Optional[str] = None
    notes: Optional[str] = None
    status: str
    submitted_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    evaluation: Optional[str] = None
    score: Optional[Decimal] = None
    evaluation_notes: Optional[str] = None
    evaluated_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[ProposalItemOut] = []

    class Config:
        from_attributes = True


class ProposalListResponse(BaseModel):
    proposals: List[ProposalDetail]
    total: int
    page: int
    per_page: int
