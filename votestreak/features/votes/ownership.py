"""
Ownership guard for identity scopes.

The only authorization boundary in front of vote data: every ledger
operation resolves or verifies its scope here before touching votes.
"""

from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from votestreak.core.database import user_identities
from votestreak.core.errors import NoPrimaryIdentityError, PermissionError


class OwnershipGuard:
    def __init__(self, session: Session):
        self._session = session

    def verify_ownership(self, caller_id: int, scope_id: int) -> bool:
        row = self._session.execute(
            select(user_identities.c.id).where(
                and_(
                    user_identities.c.id == scope_id,
                    user_identities.c.user_id == caller_id,
                )
            )
        ).first()
        return row is not None

    def resolve_primary_scope(self, caller_id: int) -> int:
        row = self._session.execute(
            select(user_identities.c.id)
            .where(
                and_(
                    user_identities.c.user_id == caller_id,
                    user_identities.c.is_primary.is_(True),
                )
            )
            .order_by(user_identities.c.id)
        ).first()
        if row is None:
            raise NoPrimaryIdentityError(
                "No primary identity found. Please complete onboarding first."
            )
        return row.id

    def resolve_scope(self, caller_id: int, scope_id: Optional[int]) -> int:
        """Resolve the caller's primary scope, or verify a supplied one.

        Raises NoPrimaryIdentityError or PermissionError; never mutates.
        """
        if scope_id is None:
            return self.resolve_primary_scope(caller_id)
        if not self.verify_ownership(caller_id, scope_id):
            # Same message whether the scope is missing or belongs to someone else
            raise PermissionError("You do not own this user identity")
        return scope_id
