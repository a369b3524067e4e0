"""
Records exchanged with the backend tables and the session flags derived from them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    user_id: str
    email: str = ""


class SessionState(str, Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    ADMIN_AUTHENTICATED = "admin_authenticated"


class AuthResult(BaseModel):
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MotivationPost(BaseModel):
    # daily_motivation carries more content columns than we name here
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    post_id: str
    post_date: str
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    image_url: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


class UserFavorite(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    favorite_id: str
    user_id: str
    post_id: str
    date_favorited: str

    @classmethod
    def placeholder(cls, favorite_id: str, user_id: str, post_id: str) -> "UserFavorite":
        return cls(
            favorite_id=favorite_id,
            user_id=user_id,
            post_id=post_id,
            date_favorited=datetime.now(timezone.utc).isoformat(),
        )
