"""
Маршруты дашборда
"""
from fastapi import APIRouter, Depends, Request

from formguard.security.manager import TokenManager

from ..dependencies.csrf import get_token_manager
from ..dependencies.templates import add_csp_nonce_to_context, templates
from ..middleware.auth import get_current_user, require_auth

router = APIRouter()

LOGOUT_FORM = "logout_form"


@router.get("/dashboard")
async def dashboard(
    request: Request,
    auth: bool = Depends(require_auth),
    manager: TokenManager = Depends(get_token_manager),
):
    """Главная страница с формой выхода"""
    context = {
        "user": get_current_user(request),
        "logout_token": manager.get_csrf_token(LOGOUT_FORM),
        **add_csp_nonce_to_context(request),
    }
    return templates.TemplateResponse(request, "dashboard.html", context)
