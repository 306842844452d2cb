# HomeBudget API
