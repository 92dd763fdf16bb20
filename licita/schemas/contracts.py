from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

class ContractCreate(BaseModel):
    proposal_id: str
    contract_number: str = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime


class ContractUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ContractDetail(BaseModel):
    id: str
    bidding_id: str
    proposal_id: str
    public_entity_id: str
    supplier_id: str
    contract_number: str
    title: Optional[str] = None
    description: Optional[str] = None
    total_value: Decimal
    start_date: datetime
    end_date: datetime
    status: str
    signed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
