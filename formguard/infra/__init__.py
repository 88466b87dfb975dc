from .session_store import InMemorySessionStore, MappingSessionStore, SessionStore

__all__ = [
    'SessionStore',
    'MappingSessionStore',
    'InMemorySessionStore',
]
