"""
Глобальная обработка ошибок для портала
"""
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, HTTPException
from starlette.responses import RedirectResponse

from formguard.exceptions import SessionUnavailable

from .audit import log_action

logger = logging.getLogger(__name__)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def _error_page(request: Request, status_code: int, message: str):
    from ..dependencies.templates import templates
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "error_code": status_code,
            "error_message": message
        },
        status_code=status_code
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик всех необработанных исключений
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
            "client_ip": request.client.host if request.client else "unknown"
        }
    )

    if _is_api(request):
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "Произошла внутренняя ошибка сервера"
            }
        )

    return _error_page(request, 500, "Внутренняя ошибка сервера")


async def session_unavailable_handler(request: Request, exc: SessionUnavailable):
    """
    Нет сессии: форму без CSRF токена не отдаём
    """
    log_action(request, "SESSION_UNAVAILABLE", request.url.path)

    if _is_api(request):
        return JSONResponse(
            status_code=503,
            content={"error": "Session unavailable", "status_code": 503}
        )

    return _error_page(request, 503, "Сессия недоступна")


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Обработчик HTTP исключений (404, 403, и т.д.)
    """
    status_code = exc.status_code

    if _is_api(request):
        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.detail,
                "status_code": status_code
            }
        )

    # Не авторизован - редиректим на логин
    if status_code == 401:
        return RedirectResponse(url="/login", status_code=303)

    error_messages = {
        404: "Страница не найдена",
        403: "Доступ запрещён",
        500: "Внутренняя ошибка сервера"
    }

    return _error_page(request, status_code, error_messages.get(status_code, str(exc.detail)))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Обработчик ошибок валидации (Pydantic)
    """
    logger.warning(
        "Validation error on %s %s",
        request.method,
        request.url.path,
    )

    if _is_api(request):
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation error",
                "details": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                    for err in exc.errors()
                ]
            }
        )

    return _error_page(request, 422, "Ошибка валидации данных")
