"""
User roles enumeration.

Defines the role types for the household ledger.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Household administrator; manages the reserve fund, categories
               and every member's wallet
        MEMBER: Family member logging their own expenses (default role)
    """
    ADMIN = "admin"
    MEMBER = "member"
