"""
Настройка шаблонов Jinja2
"""
import os
import secrets

from markupsafe import Markup, escape
from starlette.requests import Request
from starlette.templating import Jinja2Templates

from formguard.security.token import CSRFToken
from formguard.settings import settings

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))


def csrf_input_filter(token):
    """Рендерит скрытое поле формы с CSRF токеном; принимает только CSRFToken"""
    if not isinstance(token, CSRFToken):
        raise TypeError(f"csrf_input expects CSRFToken, got {type(token).__name__}")
    return Markup('<input type="hidden" name="{}" value="{}">').format(
        settings.CSRF_FORM_FIELD, escape(str(token))
    )


templates.env.filters['csrf_input'] = csrf_input_filter


def get_templates() -> Jinja2Templates:
    """Получить объект шаблонов"""
    return templates


def add_csp_nonce_to_context(request: Request) -> dict:
    """Добавляет CSP nonce в контекст шаблонов"""
    csp_nonce = getattr(request.state, 'csp_nonce', None)
    if not csp_nonce:
        csp_nonce = secrets.token_urlsafe(16)
        request.state.csp_nonce = csp_nonce
    return {"csp_nonce": csp_nonce}
