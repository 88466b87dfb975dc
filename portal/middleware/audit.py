"""
Модуль аудита событий безопасности
"""
import logging
import re
from fastapi import Request

logger = logging.getLogger(__name__)

CRITICAL_ACTIONS = {"LOGIN_FAILED", "CSRF_REJECTED", "SESSION_UNAVAILABLE"}

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _clean(value: str) -> str:
    """Экранирует управляющие символы, чтобы данные клиента не разрывали строку лога"""
    return _CONTROL_CHARS.sub(lambda m: repr(m.group())[1:-1], value)


def log_action(request: Request, action: str, details: str = ""):
    """
    Логирование действий пользователя

    Args:
        request: FastAPI Request объект
        action: Тип действия (LOGIN_SUCCESS, CSRF_REJECTED, etc.)
        details: Дополнительные детали действия (без токенов и паролей)
    """
    client_ip = request.client.host if request.client else "unknown"
    user_agent = request.headers.get("user-agent", "unknown")

    # Сессии может не быть, если SessionMiddleware не подключен
    session = request.scope.get("session") or {}
    username = str(session.get("username", "unknown"))

    log_message = (
        f"ACTION | User: {_clean(username)} | IP: {client_ip} | "
        f"Action: {action} | Details: {_clean(details)} | "
        f"User-Agent: {_clean(user_agent[:100])}"
    )

    if action in CRITICAL_ACTIONS:
        logger.warning(f"CRITICAL: {log_message}")
    else:
        logger.info(log_message)
