"""
Маршруты для входа и выхода
"""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER
from passlib.context import CryptContext

from formguard.security.manager import TokenManager
from formguard.settings import settings

from ..dependencies.csrf import get_token_manager, require_csrf
from ..dependencies.templates import add_csp_nonce_to_context, templates
from ..limiter import limiter
from ..middleware.audit import log_action

router = APIRouter()

LOGIN_FORM = "login_form"

# Хеширование паролей; старые bcrypt хеши тоже принимаются
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def render_login(request: Request, manager: TokenManager, error: str | None = None, status_code: int = 200):
    """Страница входа с CSRF токеном формы login_form"""
    context = {
        "csrf_token": manager.get_csrf_token(LOGIN_FORM),
        "error": error,
        **add_csp_nonce_to_context(request),
    }
    return templates.TemplateResponse(request, "login.html", context, status_code=status_code)


@router.get("/")
async def root(request: Request):
    """Корень: дашборд для вошедших, иначе страница входа"""
    target = "/dashboard" if request.session.get("logged_in") else "/login"
    return RedirectResponse(url=target, status_code=HTTP_303_SEE_OTHER)


@router.get("/login")
async def login_page(request: Request, manager: TokenManager = Depends(get_token_manager)):
    """Страница входа"""
    if request.session.get("logged_in"):
        return RedirectResponse(url="/dashboard", status_code=HTTP_303_SEE_OTHER)
    return render_login(request, manager)


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    csrf: bool = Depends(require_csrf),
    manager: TokenManager = Depends(get_token_manager),
):
    """Обработка входа; CSRF токен уже проверен и израсходован"""
    log_action(request, "LOGIN_ATTEMPT", f"Username: {username[:64]}")

    if not settings.ADMIN_PASSWORD_HASH:
        return render_login(
            request, manager,
            error="Вход не настроен. Задайте ADMIN_PASSWORD_HASH в переменных окружения.",
            status_code=503,
        )

    if username == settings.ADMIN_USERNAME and verify_password(password, settings.ADMIN_PASSWORD_HASH):
        request.session["logged_in"] = True
        request.session["username"] = username
        log_action(request, "LOGIN_SUCCESS", f"Username: {username}")
        return RedirectResponse(url="/dashboard", status_code=HTTP_303_SEE_OTHER)

    log_action(request, "LOGIN_FAILED", f"Username: {username[:64]}")
    # Токен израсходован неудачной попыткой, форма получает новый
    return render_login(request, manager, error="Неверный логин или пароль", status_code=401)


@router.post("/logout")
async def logout(request: Request, csrf: bool = Depends(require_csrf)):
    """Выход; сессия очищается вместе со всеми токенами"""
    if request.session.get("logged_in"):
        log_action(request, "LOGOUT")
    request.session.clear()
    return RedirectResponse(url="/login", status_code=HTTP_303_SEE_OTHER)
