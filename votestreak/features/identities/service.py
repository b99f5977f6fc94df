"""
Identity scopes, as provided by the account service.

Kept deliberately small: onboarding creates a user and its scopes; the vote
ledger only reads ownership and the primary flag.
- create_user(email)
- create_identity(user_id, primary=False)
- get_identity(identity_id)
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, insert, update

from votestreak.core.database import get_db_session, users, user_identities
from votestreak.core.errors import NotFoundError
from votestreak.models.identity import IdentityScope, User


def create_user(email: str) -> User:
    now = datetime.now(timezone.utc)
    with get_db_session() as session:
        result = session.execute(insert(users).values(email=email, created_at=now))
        user_id = result.inserted_primary_key[0]
    return User(id=user_id, email=email, created_at=now)


def create_identity(user_id: int, *, primary: bool = False) -> IdentityScope:
    """Create a scope for `user_id`. A primary scope demotes the user's other scopes."""
    now = datetime.now(timezone.utc)
    with get_db_session() as session:
        owner = session.execute(select(users.c.id).where(users.c.id == user_id)).first()
        if owner is None:
            raise NotFoundError("User not found")
        if primary:
            session.execute(
                update(user_identities)
                .where(user_identities.c.user_id == user_id)
                .values(is_primary=False)
            )
        result = session.execute(
            insert(user_identities).values(user_id=user_id, is_primary=primary, created_at=now)
        )
        identity_id = result.inserted_primary_key[0]
    return IdentityScope(id=identity_id, user_id=user_id, is_primary=primary, created_at=now)


def get_identity(identity_id: int) -> Optional[IdentityScope]:
    with get_db_session() as session:
        row = session.execute(
            select(user_identities).where(user_identities.c.id == identity_id)
        ).first()
        if not row:
            return None
        return IdentityScope(
            id=row.id,
            user_id=row.user_id,
            is_primary=row.is_primary,
            created_at=row.created_at,
        )
