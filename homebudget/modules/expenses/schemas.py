from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import Optional


class ExpenseCreate(BaseModel):
    expense_item_id: str
    household_id: str
    amount: Decimal = Field(..., gt=0)
    date: date
    description: str = Field("", max_length=255)


class ExpenseCategory(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ExpenseItemBrief(BaseModel):
    id: str
    name: str
    amount: Decimal
    category: Optional[ExpenseCategory] = None

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    id: str
    household_id: str
    expense_item_id: str
    description: str
    amount: Decimal
    date: date
    expense_item: Optional[ExpenseItemBrief] = None

    class Config:
        from_attributes = True


class ExpenseCreateResponse(BaseModel):
    message: str
    expense: ExpenseResponse
