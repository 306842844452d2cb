"""
Test configuration and fixtures for HomeBudget backend tests.
"""
import pytest
from typing import AsyncGenerator
from decimal import Decimal
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport
from fakeredis import aioredis as fake_aioredis
from passlib.context import CryptContext

from homebudget.core.database import Base, get_db, get_redis
from homebudget.core.security import create_access_token
from main import app


# ============================================================
# Database Fixtures
# ============================================================

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "TestPassword123!"
TEST_PASSWORD_HASH = CryptContext(schemes=["bcrypt"], deprecated="auto").hash(TEST_PASSWORD)


@pytest.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for each test"""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def fake_redis():
    """In-memory Redis for the token blacklist"""
    redis = fake_aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.aclose()


@pytest.fixture
async def client(db_session, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and redis overrides"""

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================
# User & Household Fixtures
# ============================================================

async def create_user(db_session, name: str, email: str):
    from homebudget.modules.users.models import User

    user = User(name=name, email=email, hashed_password=TEST_PASSWORD_HASH)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def create_household(db_session, name: str, owner_id: str, role=None):
    from homebudget.modules.households.models import Household, HouseholdMember, HouseholdRole

    household = Household(name=name)
    db_session.add(household)
    await db_session.flush()
    db_session.add(HouseholdMember(
        household_id=household.id,
        user_id=owner_id,
        role=role or HouseholdRole.OWNER,
        order=0
    ))
    await db_session.commit()
    return household


def headers_for(user_id: str) -> dict:
    token = create_access_token(data={"sub": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def test_user(db_session):
    """Create a test user"""
    return await create_user(db_session, "Test User", "test@homebudget.dev")


@pytest.fixture
async def other_user(db_session):
    """A user who belongs to no household of test_user"""
    return await create_user(db_session, "Other User", "other@homebudget.dev")


@pytest.fixture
async def test_household(db_session, test_user):
    """Household owned by test_user"""
    return await create_household(db_session, "Test Household", test_user.id)


@pytest.fixture
async def auth_headers(test_user):
    """Generate auth headers for test user"""
    return headers_for(test_user.id)


@pytest.fixture
async def other_headers(other_user):
    return headers_for(other_user.id)


# ============================================================
# Budget Fixtures
# ============================================================

@pytest.fixture
async def budget_tree(db_session, test_user, test_household):
    """
    March 2025 budget:
      Food: Groceries 100.00 (one 40.00 expense)
      Home: Rent 500.00, Internet 50.00

    Returns plain ids so tests never touch expired ORM instances.
    """
    from homebudget.modules.budgets.models import Budget, Category, ExpenseItem, Currency
    from homebudget.modules.expenses.models import Expense

    household_id = test_household.id
    budget = Budget(name="March", month=3, year=2025, currency=Currency.USD, household_id=household_id)
    db_session.add(budget)
    await db_session.flush()

    food = Category(name="Food", budget_id=budget.id, household_id=household_id)
    home = Category(name="Home", budget_id=budget.id, household_id=household_id)
    db_session.add_all([food, home])
    await db_session.flush()

    groceries = ExpenseItem(name="Groceries", amount=Decimal("100.00"), category_id=food.id, household_id=household_id)
    rent = ExpenseItem(name="Rent", amount=Decimal("500.00"), category_id=home.id, household_id=household_id)
    internet = ExpenseItem(name="Internet", amount=Decimal("50.00"), category_id=home.id, household_id=household_id)
    db_session.add_all([groceries, rent, internet])
    await db_session.flush()

    expense = Expense(
        description="Supermarket",
        amount=Decimal("40.00"),
        date=date(2025, 3, 10),
        expense_item_id=groceries.id,
        household_id=household_id
    )
    db_session.add(expense)
    await db_session.commit()

    return {
        "user_id": test_user.id,
        "household_id": household_id,
        "budget_id": budget.id,
        "food_id": food.id,
        "home_id": home.id,
        "groceries_id": groceries.id,
        "rent_id": rent.id,
        "internet_id": internet.id,
        "expense_id": expense.id,
    }


@pytest.fixture
def fetch_tree(db_session):
    """Re-read a budget's categories and items straight from the database"""
    from homebudget.modules.budgets.models import Category

    async def _fetch(budget_id: str) -> dict:
        db_session.expire_all()
        result = await db_session.execute(
            select(Category)
            .where(Category.budget_id == budget_id)
            .execution_options(populate_existing=True)
        )
        tree = {}
        for category in result.scalars().all():
            tree[category.name] = {
                "id": category.id,
                "household_id": category.household_id,
                "items": {
                    item.name: {
                        "id": item.id,
                        "amount": item.amount,
                        "household_id": item.household_id,
                    }
                    for item in category.items
                },
            }
        return tree

    return _fetch
