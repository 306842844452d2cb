from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from enum import Enum


class CurrencyEnum(str, Enum):
    GTQ = "GTQ"
    USD = "USD"
    EUR = "EUR"


# ============ Budget Schemas ============

class BudgetBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    household_id: str


class BudgetCreate(BudgetBase):
    currency: Optional[CurrencyEnum] = None


class BudgetResponse(BudgetBase):
    id: str
    currency: CurrencyEnum

    class Config:
        from_attributes = True


# ============ Reconciliation (full-state update) ============

class ItemState(BaseModel):
    """Desired item; no id means the item is new"""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)


class CategoryState(BaseModel):
    """Desired category; no id means the category is new"""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    items: List[ItemState] = []


class BudgetState(BudgetBase):
    """Complete desired state of a budget and its category/item tree"""
    currency: CurrencyEnum
    categories: List[CategoryState] = []


class BudgetUpdateResponse(BaseModel):
    message: str
    budget: BudgetResponse


# ============ Nested read models ============

class ExpenseBrief(BaseModel):
    id: str
    description: str
    amount: Decimal
    date: date

    class Config:
        from_attributes = True


class ItemResponse(BaseModel):
    id: str
    name: str
    amount: Decimal
    category_id: str
    expenses: List[ExpenseBrief] = []

    class Config:
        from_attributes = True


class CategoryResponse(BaseModel):
    id: str
    name: str
    budget_id: str
    items: List[ItemResponse] = []

    class Config:
        from_attributes = True


class BudgetHousehold(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class BudgetListItem(BudgetResponse):
    categories: List[CategoryResponse] = []


class IncomeEntry(BaseModel):
    id: str
    description: str
    amount: Decimal
    date: date
    income_category_id: Optional[str] = None
    income_category_name: Optional[str] = None


class BudgetDetailResponse(BudgetResponse):
    household: BudgetHousehold
    categories: List[CategoryResponse] = []
    income_data: List[IncomeEntry] = []
    income_amount: Decimal
    created_at: datetime


# ============ Summary ============

class CategorySummary(BaseModel):
    category_id: str
    name: str
    budgeted: Decimal
    spent: Decimal
    remaining: Decimal


class BudgetSummary(BaseModel):
    budget_id: str
    currency: CurrencyEnum
    total_budgeted: Decimal
    total_spent: Decimal
    remaining: Decimal
    total_income: Decimal
    categories: List[CategorySummary]
