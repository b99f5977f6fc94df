from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    created_at: Optional[datetime] = None


class IdentityScope(BaseModel):
    """The entity votes are recorded against. Owned by exactly one user."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    is_primary: bool = False
    created_at: Optional[datetime] = None
