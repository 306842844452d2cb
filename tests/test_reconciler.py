"""
Tests for full-state budget reconciliation
"""
import pytest
from decimal import Decimal
from sqlalchemy import select, func

from homebudget.modules.budgets.models import Budget, Category, ExpenseItem
from homebudget.modules.budgets.reconciler import BudgetReconciler
from homebudget.modules.budgets.schemas import BudgetState, CategoryState, ItemState
from homebudget.modules.budgets.exceptions import (
    BudgetNotFoundError, BudgetAccessDeniedError, BudgetUpdateError, UnknownRowError
)
from homebudget.modules.expenses.models import Expense
from conftest import create_household


def make_state(tree: dict, categories, **overrides) -> BudgetState:
    data = {
        "name": "March",
        "month": 3,
        "year": 2025,
        "currency": "USD",
        "household_id": tree["household_id"],
        "categories": categories,
    }
    data.update(overrides)
    return BudgetState(**data)


def full_state(tree: dict, **overrides) -> list:
    """Target state mirroring the fixture tree, with optional amount overrides"""
    return [
        CategoryState(id=tree["food_id"], name="Food", items=[
            ItemState(id=tree["groceries_id"], name="Groceries", amount=overrides.get("groceries", Decimal("100"))),
        ]),
        CategoryState(id=tree["home_id"], name="Home", items=[
            ItemState(id=tree["rent_id"], name="Rent", amount=overrides.get("rent", Decimal("500"))),
            ItemState(id=tree["internet_id"], name="Internet", amount=Decimal("50")),
        ]),
    ]


async def count_rows(db_session, model) -> int:
    result = await db_session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestInPlaceUpdates:
    """Rows carrying known ids are updated without changing identity"""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_updates_keep_row_ids(self, db_session, budget_tree, fetch_tree):
        state = make_state(budget_tree, [
            CategoryState(id=budget_tree["food_id"], name="Food & Drinks", items=[
                ItemState(id=budget_tree["groceries_id"], name="Supermarket", amount=Decimal("120")),
            ]),
            CategoryState(id=budget_tree["home_id"], name="Housing", items=[
                ItemState(id=budget_tree["rent_id"], name="Rent", amount=Decimal("550")),
                ItemState(id=budget_tree["internet_id"], name="Fiber", amount=Decimal("60")),
            ]),
        ])

        await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        tree = await fetch_tree(budget_tree["budget_id"])
        assert tree["Food & Drinks"]["id"] == budget_tree["food_id"]
        assert tree["Housing"]["id"] == budget_tree["home_id"]
        assert tree["Food & Drinks"]["items"]["Supermarket"]["id"] == budget_tree["groceries_id"]
        assert tree["Food & Drinks"]["items"]["Supermarket"]["amount"] == Decimal("120")
        assert tree["Housing"]["items"]["Rent"]["amount"] == Decimal("550")
        assert tree["Housing"]["items"]["Fiber"]["id"] == budget_tree["internet_id"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_expenses_stay_linked_to_updated_item(self, db_session, budget_tree):
        state = make_state(budget_tree, full_state(budget_tree, groceries=Decimal("250")))

        await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        result = await db_session.execute(
            select(Expense).where(Expense.id == budget_tree["expense_id"]).execution_options(populate_existing=True)
        )
        expense = result.scalar_one()
        assert expense.expense_item_id == budget_tree["groceries_id"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_budget_scalar_fields_are_updated(self, db_session, budget_tree):
        state = make_state(budget_tree, full_state(budget_tree), name="April plan", month=4, currency="EUR")

        budget = await BudgetReconciler(db_session).reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], state
        )

        assert budget.id == budget_tree["budget_id"]
        assert budget.name == "April plan"
        assert budget.month == 4
        assert budget.currency.value == "EUR"


class TestCreatesAndDeletes:
    """Rows without ids are created, omitted rows are deleted"""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_item_update_and_creation_in_same_category(self, db_session, budget_tree, fetch_tree):
        """i1 moves from 100 to 150 and a new Snacks item appears under the same category"""
        categories = full_state(budget_tree, groceries=Decimal("150"))
        categories[0].items.append(ItemState(name="Snacks", amount=Decimal("20")))
        state = make_state(budget_tree, categories)

        await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        tree = await fetch_tree(budget_tree["budget_id"])
        food = tree["Food"]
        assert food["id"] == budget_tree["food_id"]
        assert food["items"]["Groceries"]["amount"] == Decimal("150")
        assert food["items"]["Snacks"]["amount"] == Decimal("20")
        assert food["items"]["Snacks"]["id"] not in (
            budget_tree["groceries_id"], budget_tree["rent_id"], budget_tree["internet_id"]
        )
        assert set(tree["Home"]["items"]) == {"Rent", "Internet"}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_new_category_with_items(self, db_session, budget_tree, fetch_tree):
        categories = full_state(budget_tree)
        categories.append(CategoryState(name="Travel", items=[
            ItemState(name="Flights", amount=Decimal("300")),
            ItemState(name="Hotel", amount=Decimal("200")),
        ]))
        state = make_state(budget_tree, categories)

        reconciler = BudgetReconciler(db_session)
        await reconciler.reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        tree = await fetch_tree(budget_tree["budget_id"])
        assert set(tree) == {"Food", "Home", "Travel"}
        assert set(tree["Travel"]["items"]) == {"Flights", "Hotel"}
        assert tree["Travel"]["household_id"] == budget_tree["household_id"]
        assert reconciler.stats["created"] == 3
        assert reconciler.stats["deleted"] == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_omitted_item_is_deleted(self, db_session, budget_tree, fetch_tree):
        categories = full_state(budget_tree)
        categories[1].items = [ItemState(id=budget_tree["rent_id"], name="Rent", amount=Decimal("500"))]
        state = make_state(budget_tree, categories)

        await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        tree = await fetch_tree(budget_tree["budget_id"])
        assert set(tree["Home"]["items"]) == {"Rent"}
        result = await db_session.execute(select(ExpenseItem).where(ExpenseItem.id == budget_tree["internet_id"]))
        assert result.scalar_one_or_none() is None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_empty_category_list_removes_everything(self, db_session, budget_tree, fetch_tree):
        state = make_state(budget_tree, [], name="Cleared")

        budget = await BudgetReconciler(db_session).reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], state
        )

        assert budget.name == "Cleared"
        assert await fetch_tree(budget_tree["budget_id"]) == {}
        assert await count_rows(db_session, Category) == 0
        assert await count_rows(db_session, ExpenseItem) == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_expenses_of_deleted_items_are_removed(self, db_session, budget_tree):
        state = make_state(budget_tree, [full_state(budget_tree)[1]])

        await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        assert await count_rows(db_session, Expense) == 0


class TestIdempotence:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_second_identical_submission_changes_nothing(self, db_session, budget_tree, fetch_tree):
        categories = full_state(budget_tree)
        categories[0].items.append(ItemState(name="Snacks", amount=Decimal("20")))
        await BudgetReconciler(db_session).reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], make_state(budget_tree, categories)
        )
        first = await fetch_tree(budget_tree["budget_id"])

        resubmitted = [
            CategoryState(id=category["id"], name=name, items=[
                ItemState(id=item["id"], name=item_name, amount=item["amount"])
                for item_name, item in category["items"].items()
            ])
            for name, category in first.items()
        ]
        reconciler = BudgetReconciler(db_session)
        await reconciler.reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], make_state(budget_tree, resubmitted)
        )

        assert await fetch_tree(budget_tree["budget_id"]) == first
        assert reconciler.stats == {"created": 0, "updated": 0, "deleted": 0}


class TestReconcileStats:
    """Counters describe the most recent call only"""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_only_changed_rows_count_as_updated(self, db_session, budget_tree):
        categories = full_state(budget_tree, rent=Decimal("525"))
        categories[0].name = "Groceries & Food"

        reconciler = BudgetReconciler(db_session)
        await reconciler.reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], make_state(budget_tree, categories)
        )

        assert reconciler.stats == {"created": 0, "updated": 2, "deleted": 0}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_reused_reconciler_resets_counters(self, db_session, budget_tree):
        reconciler = BudgetReconciler(db_session)

        categories = full_state(budget_tree)
        categories.append(CategoryState(name="Travel", items=[ItemState(name="Flights", amount=Decimal("300"))]))
        await reconciler.reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], make_state(budget_tree, categories)
        )
        assert reconciler.stats["created"] == 2

        await reconciler.reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], make_state(budget_tree, full_state(budget_tree))
        )

        assert reconciler.stats == {"created": 0, "updated": 0, "deleted": 2}


class TestFailures:
    """Authorization, lookup and transactional failures"""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_budget(self, db_session, budget_tree):
        state = make_state(budget_tree, [])

        with pytest.raises(BudgetNotFoundError):
            await BudgetReconciler(db_session).reconcile("missing-budget", budget_tree["user_id"], state)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_non_member_is_rejected_before_mutation(self, db_session, budget_tree, other_user, fetch_tree):
        other_user_id = other_user.id
        state = make_state(budget_tree, [], name="Hijacked")

        with pytest.raises(BudgetAccessDeniedError):
            await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], other_user_id, state)

        tree = await fetch_tree(budget_tree["budget_id"])
        assert set(tree) == {"Food", "Home"}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_moving_to_foreign_household_is_rejected(self, db_session, budget_tree, other_user):
        foreign = await create_household(db_session, "Foreign", other_user.id)
        state = make_state(budget_tree, full_state(budget_tree), household_id=foreign.id)

        with pytest.raises(BudgetAccessDeniedError):
            await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_stale_id_rolls_back_everything(self, db_session, budget_tree, fetch_tree):
        """New rows flushed before the failure must not survive"""
        categories = full_state(budget_tree, groceries=Decimal("999"))
        categories[0].items.append(ItemState(name="Snacks", amount=Decimal("20")))
        categories.append(CategoryState(name="Travel", items=[ItemState(name="Flights", amount=Decimal("300"))]))
        categories.append(CategoryState(id="deleted-elsewhere", name="Ghost", items=[]))
        state = make_state(budget_tree, categories, name="Should not stick")

        with pytest.raises(BudgetUpdateError) as exc_info:
            await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        assert isinstance(exc_info.value.__cause__, UnknownRowError)

        tree = await fetch_tree(budget_tree["budget_id"])
        assert set(tree) == {"Food", "Home"}
        assert set(tree["Food"]["items"]) == {"Groceries"}
        assert tree["Food"]["items"]["Groceries"]["amount"] == Decimal("100")

        result = await db_session.execute(select(Budget.name).where(Budget.id == budget_tree["budget_id"]))
        assert result.scalar_one() == "March"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_item_id_from_another_category_fails(self, db_session, budget_tree, fetch_tree):
        categories = full_state(budget_tree)
        categories[0].items.append(ItemState(id=budget_tree["rent_id"], name="Rent", amount=Decimal("1")))
        state = make_state(budget_tree, categories)

        with pytest.raises(BudgetUpdateError):
            await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)

        tree = await fetch_tree(budget_tree["budget_id"])
        assert tree["Home"]["items"]["Rent"]["amount"] == Decimal("500")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_duplicate_category_id_fails(self, db_session, budget_tree):
        categories = full_state(budget_tree)
        categories.append(CategoryState(id=budget_tree["food_id"], name="Food again", items=[]))
        state = make_state(budget_tree, categories)

        with pytest.raises(BudgetUpdateError):
            await BudgetReconciler(db_session).reconcile(budget_tree["budget_id"], budget_tree["user_id"], state)


class TestHouseholdMove:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_rows_follow_budget_to_new_household(self, db_session, budget_tree, fetch_tree):
        second = await create_household(db_session, "Second", budget_tree["user_id"])
        second_id = second.id
        state = make_state(budget_tree, full_state(budget_tree), household_id=second_id)

        budget = await BudgetReconciler(db_session).reconcile(
            budget_tree["budget_id"], budget_tree["user_id"], state
        )

        assert budget.household_id == second_id
        tree = await fetch_tree(budget_tree["budget_id"])
        for category in tree.values():
            assert category["household_id"] == second_id
            for item in category["items"].values():
                assert item["household_id"] == second_id

        result = await db_session.execute(
            select(Expense.household_id).where(Expense.id == budget_tree["expense_id"])
        )
        assert result.scalar_one() == second_id
