from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from licita.models.enums import BiddingType

class BiddingCreate(BaseModel):
    title: str = Field(..., min_length=3)
    description: str = Field(..., min_length=3)
    bidding_number: str = Field(..., min_length=1)
    type: BiddingType
    estimated_value: Optional[Decimal] = Field(None, ge=0)
    opening_date: datetime
    closing_date: datetime
    delivery_deadline: datetime
    delivery_location: Optional[str] = None
    is_public: bool = True
    requirements: Optional[str] = None
    evaluation_criteria: Optional[str] = None
    # только для администратора: создать от имени органа
    public_entity_id: Optional[str] = None

    class Config:
        use_enum_values = True


class BiddingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = Field(None, min_length=3)
    bidding_number: Optional[str] = None
    type: Optional[BiddingType] = None
    estimated_value: Optional[Decimal] = Field(None, ge=0)
    opening_date: Optional[datetime] = None
    closing_date: Optional[datetime] = None
    delivery_deadline: Optional[datetime] = None
    delivery_location: Optional[str] = None
    is_public: Optional[bool] = None
    requirements: Optional[str] = None
    evaluation_criteria: Optional[str] = None

    class Config:
        use_enum_values = True


class BiddingModeration(BaseModel):
    action: str = Field(..., pattern="^(approve|reject)$")


class BiddingDetail(BaseModel):
    id: str
    public_entity_id: str
    title: str
    description: str
    bidding_number: str
    type: str
    status: str
    estimated_value: Optional[Decimal] = None
    opening_date: datetime
    closing_date: datetime
    delivery_deadline: datetime
    delivery_location: Optional[str] = None
    is_public: bool
    requirements: Optional[str] = None
    evaluation_criteria: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BiddingListResponse(BaseModel):
    biddings: List[BiddingDetail]
    total: int
    page: int
    per_page: int
