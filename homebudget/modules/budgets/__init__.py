# Budgets module
