"""
Constants for sale operations.
"""

# Display name for sales without a customer record
WALK_IN_CUSTOMER_NAME = "Walk-in Customer"

SALES_PAGE_SIZE = 10
