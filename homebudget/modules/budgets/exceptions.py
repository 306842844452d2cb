class BudgetError(Exception):
    """Base class for budget domain errors"""


class BudgetNotFoundError(BudgetError):
    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Budget {budget_id} not found")


class BudgetAccessDeniedError(BudgetError):
    def __init__(self, household_id: str, user_id: str):
        self.household_id = household_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a member of household {household_id}")


class UnknownRowError(BudgetError):
    """A submitted id does not match any row of the budget being updated"""

    def __init__(self, kind: str, row_id: str):
        self.kind = kind
        self.row_id = row_id
        super().__init__(f"Unknown {kind} id {row_id}")


class BudgetUpdateError(BudgetError):
    """Reconciliation failed and was rolled back"""

    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Failed to update budget {budget_id}")
