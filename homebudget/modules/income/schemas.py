from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional


class IncomeCategoryCreate(BaseModel):
    household_id: str
    name: str = Field(..., min_length=1, max_length=100)


class IncomeCategoryResponse(BaseModel):
    id: str
    household_id: str
    name: str

    class Config:
        from_attributes = True


class IncomeCreate(BaseModel):
    household_id: str
    amount: Decimal = Field(..., gt=0)
    date: date
    description: str = Field("", max_length=255)
    income_category_id: Optional[str] = None


class IncomeResponse(BaseModel):
    id: str
    household_id: str
    description: str
    amount: Decimal
    date: date
    income_category: Optional[IncomeCategoryResponse] = None
    created_at: datetime

    class Config:
        from_attributes = True
