# Households module
