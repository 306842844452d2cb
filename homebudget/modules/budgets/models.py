from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from homebudget.core.database import Base, generate_uuid
from decimal import Decimal
import enum


class Currency(str, enum.Enum):
    """Currencies a budget can be planned in"""
    GTQ = "GTQ"
    USD = "USD"
    EUR = "EUR"


class Budget(Base):
    """
    A household's financial plan for one month.
    One budget per (household, month, year), checked when the budget is created.
    """
    __tablename__ = "budgets"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)
    currency = Column(SQLEnum(Currency), default=Currency.GTQ, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    household = relationship("Household", lazy="selectin")
    categories = relationship(
        "Category",
        back_populates="budget",
        lazy="selectin",
        order_by="Category.created_at"
    )

    def __repr__(self):
        return f"<Budget(id={self.id}, name={self.name}, period={self.year}-{self.month:02d})>"


class Category(Base):
    """Grouping of planned expense items inside a budget"""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=False, index=True)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    budget = relationship("Budget", back_populates="categories", lazy="raise_on_sql")
    items = relationship(
        "ExpenseItem",
        back_populates="category",
        lazy="selectin",
        order_by="ExpenseItem.created_at"
    )

    @property
    def budgeted_amount(self) -> Decimal:
        """Sum of the items' planned amounts"""
        return sum((item.amount for item in self.items), Decimal("0"))

    @property
    def spent_amount(self) -> Decimal:
        """Sum of expenses recorded against the items"""
        return sum((item.spent_amount for item in self.items), Decimal("0"))

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"


class ExpenseItem(Base):
    """Planned expense line with a budgeted amount"""
    __tablename__ = "expense_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    category = relationship("Category", back_populates="items", lazy="raise_on_sql")
    expenses = relationship(
        "Expense",
        back_populates="expense_item",
        lazy="selectin",
        order_by="Expense.date"
    )

    @property
    def spent_amount(self) -> Decimal:
        return sum((expense.amount for expense in self.expenses), Decimal("0"))

    @property
    def remaining_amount(self) -> Decimal:
        return self.amount - self.spent_amount

    def __repr__(self):
        return f"<ExpenseItem(id={self.id}, name={self.name}, amount={self.amount})>"
