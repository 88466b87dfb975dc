"""
formguard: per-session, per-form CSRF tokens
"""
from .exceptions import FormGuardError, SessionUnavailable
from .infra.session_store import InMemorySessionStore, MappingSessionStore, SessionStore
from .security.manager import TokenManager
from .security.token import CSRFToken, NamedToken

__all__ = [
    'FormGuardError',
    'SessionUnavailable',
    'SessionStore',
    'MappingSessionStore',
    'InMemorySessionStore',
    'TokenManager',
    'CSRFToken',
    'NamedToken',
]
