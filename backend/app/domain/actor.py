"""
Resolved caller identity handed to the domain layer.

The ledger core does not authenticate; it trusts the (user_id, role) pair
supplied by the HTTP layer.
"""

from dataclasses import dataclass

from backend.app.models.enums import UserRole


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_claims(cls, claims: dict) -> "Actor":
        return cls(user_id=claims["user_id"], role=UserRole(claims["role"]))

    def can_access_user(self, user_id: int) -> bool:
        """Members reach only their own records; admins reach everyone's."""
        return self.is_admin or self.user_id == user_id
