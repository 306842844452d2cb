"""
Full-state budget updates.

The client submits the complete category/item tree it wants a budget to
have. Rows are matched by id: matched rows are updated in place (keeping
their ids, and therefore their expenses), rows without an id are created,
and persisted rows the client left out are deleted. Everything happens in
one transaction.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update
from typing import Dict, List
import logging

from homebudget.core.database import generate_uuid
from homebudget.modules.budgets.models import Budget, Category, ExpenseItem, Currency
from homebudget.modules.budgets.schemas import BudgetState, CategoryState
from homebudget.modules.budgets.exceptions import (
    BudgetNotFoundError, BudgetAccessDeniedError, BudgetUpdateError, UnknownRowError
)
from homebudget.modules.expenses.models import Expense
from homebudget.modules.households.services import HouseholdService

logger = logging.getLogger(__name__)


class BudgetReconciler:
    """Makes a budget's persisted category/item tree match a submitted state"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.stats = self._empty_stats()

    async def reconcile(self, budget_id: str, user_id: str, state: BudgetState) -> Budget:
        """
        Apply `state` to the budget and commit.

        Raises BudgetNotFoundError or BudgetAccessDeniedError before anything
        is changed, and BudgetUpdateError (chained to the cause) when any row
        operation fails; in that case nothing is committed.
        """
        self.stats = self._empty_stats()

        budget = await self._get_budget(budget_id)
        if budget is None:
            raise BudgetNotFoundError(budget_id)

        await self._verify_membership(budget.household_id, user_id)
        if state.household_id != budget.household_id:
            await self._verify_membership(state.household_id, user_id)

        household_changed = state.household_id != budget.household_id

        try:
            budget.name = state.name
            budget.month = state.month
            budget.year = state.year
            budget.currency = Currency(state.currency.value)
            budget.household_id = state.household_id

            categories = await self._load_categories(budget_id)
            category_lookup: Dict[str, Category] = {c.id: c for c in categories}
            retained_item_ids: List[str] = []

            for target in state.categories:
                if target.id is not None:
                    category = category_lookup.pop(target.id, None)
                    if category is None:
                        raise UnknownRowError("category", target.id)
                    self._apply(category, name=target.name, household_id=state.household_id)
                    existing_items = list(category.items)
                else:
                    category = Category(
                        id=generate_uuid(),
                        name=target.name,
                        budget_id=budget_id,
                        household_id=state.household_id
                    )
                    self.db.add(category)
                    await self.db.flush()
                    existing_items = []
                    self.stats["created"] += 1

                retained_item_ids.extend(
                    await self._reconcile_items(category, target, existing_items, state.household_id)
                )

            for category in category_lookup.values():
                await self._delete_category(category)

            if household_changed and retained_item_ids:
                await self.db.execute(
                    update(Expense)
                    .where(Expense.expense_item_id.in_(retained_item_ids))
                    .values(household_id=state.household_id)
                )

            await self.db.flush()
            await self.db.commit()
        except Exception as exc:
            await self.db.rollback()
            logger.error(f"Budget {budget_id} update rolled back: {exc}")
            raise BudgetUpdateError(budget_id) from exc

        logger.info(
            f"Budget {budget_id} reconciled: {self.stats['created']} created, "
            f"{self.stats['updated']} updated, {self.stats['deleted']} deleted"
        )
        return budget

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {"created": 0, "updated": 0, "deleted": 0}

    def _apply(self, row, **values) -> None:
        """Set changed attributes; counts the row as updated only if something differs"""
        changed = False
        for field, value in values.items():
            if getattr(row, field) != value:
                setattr(row, field, value)
                changed = True
        if changed:
            self.stats["updated"] += 1

    async def _get_budget(self, budget_id: str):
        result = await self.db.execute(select(Budget).where(Budget.id == budget_id))
        return result.scalar_one_or_none()

    async def _verify_membership(self, household_id: str, user_id: str) -> None:
        if not await HouseholdService.is_member(self.db, household_id, user_id):
            raise BudgetAccessDeniedError(household_id, user_id)

    async def _load_categories(self, budget_id: str) -> List[Category]:
        result = await self.db.execute(
            select(Category)
            .where(Category.budget_id == budget_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _reconcile_items(
        self,
        category: Category,
        target: CategoryState,
        existing_items: List[ExpenseItem],
        household_id: str
    ) -> List[str]:
        """Update, create and delete the items of one category; returns retained ids"""
        item_lookup: Dict[str, ExpenseItem] = {i.id: i for i in existing_items}
        retained: List[str] = []

        for target_item in target.items:
            if target_item.id is not None:
                item = item_lookup.pop(target_item.id, None)
                if item is None:
                    raise UnknownRowError("item", target_item.id)
                self._apply(item, name=target_item.name, amount=target_item.amount, household_id=household_id)
                retained.append(item.id)
            else:
                self.db.add(ExpenseItem(
                    id=generate_uuid(),
                    name=target_item.name,
                    amount=target_item.amount,
                    category_id=category.id,
                    household_id=household_id
                ))
                await self.db.flush()
                self.stats["created"] += 1

        await self._delete_items(list(item_lookup))
        return retained

    async def _delete_items(self, item_ids: List[str]) -> None:
        """Delete items and the expenses recorded against them"""
        if not item_ids:
            return
        await self.db.execute(delete(Expense).where(Expense.expense_item_id.in_(item_ids)))
        await self.db.execute(delete(ExpenseItem).where(ExpenseItem.id.in_(item_ids)))
        self.stats["deleted"] += len(item_ids)

    async def _delete_category(self, category: Category) -> None:
        await self._delete_items([item.id for item in category.items])
        await self.db.execute(delete(Category).where(Category.id == category.id))
        self.stats["deleted"] += 1
