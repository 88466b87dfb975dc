"""
Модуль авторизации для страниц портала
"""
from fastapi import Request, HTTPException


def require_auth(request: Request):
    """
    Dependency для проверки авторизации пользователя

    Использование:
        @router.get("/some_route")
        async def some_route(request: Request, auth: bool = Depends(require_auth)):
            # ...
    """
    if not request.session.get("logged_in"):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return True


def get_current_user(request: Request):
    """
    Получить информацию о текущем пользователе

    Returns:
        dict: Информация о пользователе или None
    """
    if not request.session.get("logged_in"):
        return None
    return {
        "username": request.session.get("username", "admin"),
        "logged_in": True
    }
