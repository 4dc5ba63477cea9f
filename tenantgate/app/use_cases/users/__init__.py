"""
User Management Use Cases
"""

from .get_user_use_case import GetUserUseCase
from .list_users_use_case import ListUsersUseCase
from .update_user_use_case import UpdateUserUseCase
from .delete_user_use_case import DeleteUserUseCase
from .restore_user_use_case import RestoreUserUseCase
from .purge_user_use_case import PurgeUserUseCase
from .dtos import UpdateUserCommand, UpdateUserResponse, UserDetail, UserListResponse

__all__ = [
    # Use Cases
    "GetUserUseCase",
    "ListUsersUseCase",
    "UpdateUserUseCase",
    "DeleteUserUseCase",
    "RestoreUserUseCase",
    "PurgeUserUseCase",
    # DTOs
    "UpdateUserCommand",
    "UpdateUserResponse",
    "UserDetail",
    "UserListResponse",
]
