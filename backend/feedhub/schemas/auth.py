"""
FeedHub Backend — Auth Schemas
===============================

Response bodies for /auth. Signup and login bodies are read by hand from
JSON or forms (see routes/payload.py).

Sessions never carry the raw token string: only the freshly issued token in
AuthResponse does.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from feedhub.schemas.common import CamelModel


class UserOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    user_type: str
    profile_image: Optional[str] = None


class AuthResponse(CamelModel):
    """Returned by signup (201) and login (200)."""

    token: str = Field(description="Bearer token for the Authorization header")
    user: UserOut


class SessionOut(CamelModel):
    id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    user_agent: str = ""
    ip_address: str = ""
    is_current: bool = False


class SessionsResponse(CamelModel):
    sessions: List[SessionOut]


class LogoutAllResponse(CamelModel):
    message: str
    revoked: int = Field(description="Number of sessions deactivated")
