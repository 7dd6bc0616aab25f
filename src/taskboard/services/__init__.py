"""Business services."""

from .auth import AuthResult, AuthService
from .tasks import TaskService
from .users import UserService

__all__ = ["AuthResult", "AuthService", "TaskService", "UserService"]
