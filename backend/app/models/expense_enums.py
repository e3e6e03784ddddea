"""
Expense enumerations.
"""

import enum


class PaymentMethod(str, enum.Enum):
    """How an expense was paid. Only CASH touches the payer's wallet."""
    UPI = "UPI"
    CASH = "CASH"
    CARD = "CARD"
