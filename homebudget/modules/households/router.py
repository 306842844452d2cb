from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from homebudget.core.database import get_db
from homebudget.core.dependencies import RequestContext, get_request_context
from homebudget.modules.households import schemas
from homebudget.modules.households.services import HouseholdService

router = APIRouter(prefix="/api/v1/households", tags=["households"])


@router.get("", response_model=List[schemas.HouseholdResponse])
async def get_households(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Get households of the current user, sorted by the user's order"""
    return await HouseholdService.get_households(db, ctx.user_id)


@router.post("", response_model=schemas.HouseholdResponse, status_code=status.HTTP_201_CREATED)
async def create_household(
    data: schemas.HouseholdCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Create a household; the creator becomes its owner"""
    return await HouseholdService.create_household(db, ctx.user_id, data)


@router.put("/order", status_code=status.HTTP_200_OK)
async def update_household_order(
    data: schemas.HouseholdOrderUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Persist drag-and-drop ordering of the user's households"""
    await HouseholdService.update_orders(db, ctx.user_id, data.orders)
    return {"success": True}


@router.get("/{household_id}", response_model=schemas.HouseholdResponse)
async def get_household(
    household_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Get household details with members"""
    household = await HouseholdService.get_household(db, household_id, ctx.user_id)
    if not household:
        raise HTTPException(status_code=404, detail="Household not found")
    return household


@router.patch("/{household_id}", response_model=schemas.HouseholdResponse)
async def update_household(
    household_id: str,
    data: schemas.HouseholdUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Rename household (owner only)"""
    household = await HouseholdService.update_household(db, household_id, ctx.user_id, data)
    if not household:
        raise HTTPException(
            status_code=404,
            detail="Household not found or you do not have permission to edit it"
        )
    return household


@router.delete("/{household_id}", status_code=status.HTTP_200_OK)
async def delete_household(
    household_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Delete household with its budgets, expenses and income (owner only)"""
    success = await HouseholdService.delete_household(db, household_id, ctx.user_id)
    if not success:
        raise HTTPException(
            status_code=404,
            detail="Household not found or you do not have permission to delete it"
        )
    return {"success": True}


@router.post("/{household_id}/members", response_model=schemas.AddMemberResponse)
async def add_member(
    household_id: str,
    data: schemas.AddMemberRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Add a user to the household as MEMBER (owner or admin only)"""
    user = await HouseholdService.add_member(db, household_id, ctx.user_id, data.user_id)
    return {"success": True, "user": user}
