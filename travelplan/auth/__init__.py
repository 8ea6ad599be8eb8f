"""
Authentication module for the Travel Plan backend.
Verifies bearer tokens issued by the session service and resolves trip owners.
"""
from travelplan.auth.models import UserModel
from travelplan.auth.dependencies import get_current_user
from travelplan.auth.jwt import create_access_token, verify_token

__all__ = [
    "UserModel",
    "get_current_user",
    "create_access_token",
    "verify_token",
]
