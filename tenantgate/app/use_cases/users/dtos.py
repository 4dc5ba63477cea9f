from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from tenantgate.app.use_cases.auth.dtos import UserInfo
from tenantgate.domain.entities import User, UserRole


class UserDetail(UserInfo):
    """User as shown by the management endpoints; version feeds the next update"""

    version: int
    login_count: int
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserDetail":
        return cls(
            **UserInfo.from_user(user).model_dump(),
            version=user.version,
            login_count=user.login_count,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UpdateUserCommand(BaseModel):
    """Partial update; None leaves a field unchanged"""

    version: int
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None


class UpdateUserResponse(BaseModel):
    message: str
    changed: List[str]
    user: UserDetail


class UserListResponse(BaseModel):
    users: List[UserDetail]
    limit: int
    offset: int
    has_more: bool
