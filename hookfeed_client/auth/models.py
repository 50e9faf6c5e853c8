"""
認証データモデル
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SessionState(Enum):
    ANONYMOUS = "anonymous"
    PENDING_VALIDATION = "pending_validation"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class UserProfile:
    """/users/self/ が返すユーザープロフィール"""
    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    subscription_start_date: Optional[str] = None
    subscription_ended_date: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=data.get("id"),
            email=data.get("email"),
            username=data.get("username"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            subscription_start_date=data.get("subscriptionStartDate"),
            subscription_ended_date=data.get("subscriptionEndedDate"),
            raw=dict(data),
        )


@dataclass(frozen=True)
class AuthResult:
    """login/registerの結果"""
    success: bool
    error: Optional[str] = None
