"""
Middleware для портала
"""
from .auth import require_auth, get_current_user
from .audit import log_action

__all__ = [
    'require_auth',
    'get_current_user',
    'log_action',
]
