from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from homebudget.modules.users.schemas import UserBrief, HouseholdRoleEnum


class HouseholdCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)


class HouseholdUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)


class HouseholdMemberResponse(BaseModel):
    user: UserBrief
    role: HouseholdRoleEnum
    order: int
    joined_at: datetime

    class Config:
        from_attributes = True


class HouseholdResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    members: List[HouseholdMemberResponse] = []

    class Config:
        from_attributes = True


class AddMemberRequest(BaseModel):
    user_id: str


class AddMemberResponse(BaseModel):
    success: bool
    user: UserBrief


class HouseholdOrder(BaseModel):
    household_id: str
    order: int


class HouseholdOrderUpdate(BaseModel):
    orders: List[HouseholdOrder]
