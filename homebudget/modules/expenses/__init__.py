# Expenses module
