from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class UserSession(SQLModel, table=True):
    """Session token -> role lookup. Rows are issued by the auth service; this app only reads them."""

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(index=True, unique=True)
    user_email: str
    role: str  # "admin" | "user" | ...
    expires_at: datetime
