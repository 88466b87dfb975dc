"""
Общие зависимости для портала
"""
from .csrf import get_session_store, get_token_manager, require_csrf
from .templates import get_templates

__all__ = [
    'get_session_store',
    'get_token_manager',
    'require_csrf',
    'get_templates',
]
