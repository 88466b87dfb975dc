"""
Конфигурация pytest для formguard тестов
"""
import os

# Must be set before formguard.settings is imported
os.environ.setdefault("RATE_LIMIT_LOGIN", "1000/minute")
os.environ.setdefault("SECRET_KEY", "test-secret-key-test-secret-key-0123456789")

import pytest

from formguard.infra.session_store import InMemorySessionStore
from formguard.security.manager import TokenManager


@pytest.fixture
def store() -> InMemorySessionStore:
    """Пустая доступная сессия"""
    return InMemorySessionStore()


@pytest.fixture
def manager(store: InMemorySessionStore) -> TokenManager:
    """Менеджер токенов поверх in-memory сессии"""
    return TokenManager(store)


@pytest.fixture
def no_session_manager() -> TokenManager:
    """Менеджер токенов без сессии"""
    return TokenManager(InMemorySessionStore(available=False))
