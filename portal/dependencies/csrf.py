"""
CSRF зависимости для маршрутов: менеджер токенов поверх request.session
"""
import logging

from fastapi import Depends, HTTPException, Request

from formguard.infra.session_store import MappingSessionStore, SessionStore
from formguard.security.manager import TokenManager
from formguard.security.token import NamedToken
from formguard.settings import settings

from ..middleware.audit import log_action

logger = logging.getLogger(__name__)

CSRF_ERROR_DETAIL = "Invalid CSRF token"


def get_session_store(request: Request) -> SessionStore:
    """Session store for the request; unavailable without SessionMiddleware

    Каждый запрос получает свой адаптер: атомарность take_if_equals действует
    только внутри запроса, см. MappingSessionStore.
    """
    session = request.scope.get("session")
    return MappingSessionStore(session)


def get_token_manager(store: SessionStore = Depends(get_session_store)) -> TokenManager:
    """Token manager bound to the current session"""
    return TokenManager(store, session_key=settings.CSRF_SESSION_KEY)


async def _submitted_token(request: Request):
    header_value = request.headers.get(settings.CSRF_HEADER_NAME)
    if header_value is not None:
        return header_value
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        value = form.get(settings.CSRF_FORM_FIELD)
        return value if isinstance(value, str) else None
    return None


async def require_csrf(request: Request, manager: TokenManager = Depends(get_token_manager)) -> bool:
    """
    Dependency, отклоняющая запрос без действительного CSRF токена

    Использование:
        @router.post("/some_form")
        async def some_form(request: Request, csrf: bool = Depends(require_csrf)):
            # ...
    """
    submitted = await _submitted_token(request)
    if manager.validate_token(submitted):
        return True

    named = NamedToken.parse(submitted)
    form_name = named.form_name[:64] if named else "-"
    log_action(request, "CSRF_REJECTED", f"Form: {form_name!r}")
    raise HTTPException(status_code=403, detail=CSRF_ERROR_DETAIL)
