"""
CSRF tokens: value types and the per-form token manager
"""
from .manager import CSRF_SESSION_KEY, TokenManager
from .token import CSRFToken, NamedToken

__all__ = [
    'CSRF_SESSION_KEY',
    'TokenManager',
    'CSRFToken',
    'NamedToken',
]
