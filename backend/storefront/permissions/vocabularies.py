# Overview: Fixed status and method vocabularies. Values are case-sensitive.

PAYMENT_STATUSES = ("Pending", "Processing", "Completed", "Failed", "Cancelled")

SHIPPING_STATUSES = (
    "Preparing",
    "Shipped",
    "In Transit",
    "Out for Delivery",
    "Delivered",
    "Failed",
    "Returned",
)

COMPLAINT_STATUSES = ("Pending", "In Progress", "Resolved", "Rejected", "Closed")

PAYMENT_METHODS = ("Credit Card", "Debit Card", "PayPal", "Bank Transfer", "Cash")

INITIAL_PAYMENT_STATUS = "Pending"
INITIAL_SHIPPING_STATUS = "Preparing"
INITIAL_COMPLAINT_STATUS = "Pending"
DELIVERED = "Delivered"
