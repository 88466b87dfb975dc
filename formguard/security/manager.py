"""
Per-form CSRF token manager.

Tokens live in the session under one key as a ``{form_name: value}`` map, so
several forms on the same page never invalidate each other. A token is
handed out as ``form_name:value`` and consumed by the first submission that
matches it.
"""
from __future__ import annotations

import logging
import secrets
from collections.abc import Mapping
from typing import Any

from formguard.exceptions import SessionUnavailable
from formguard.infra.session_store import SessionStore
from formguard.security.token import SEPARATOR, CSRFToken, NamedToken

logger = logging.getLogger(__name__)

CSRF_SESSION_KEY = "csrf_tokens"
TOKEN_BYTES = 32


def _check_form_name(form_name: str) -> None:
    if not isinstance(form_name, str):
        raise TypeError(f"form_name must be str, got {type(form_name).__name__}")
    if not form_name:
        raise ValueError("form_name must not be empty")
    if SEPARATOR in form_name:
        raise ValueError(f"form_name must not contain {SEPARATOR!r}")


class TokenManager:
    """Issue, look up and single-use validate CSRF tokens scoped by form name."""

    def __init__(self, store: SessionStore, session_key: str = CSRF_SESSION_KEY):
        self.store = store
        self.session_key = session_key

    def _tokens(self) -> dict:
        tokens = self.store.get(self.session_key)
        return dict(tokens) if isinstance(tokens, Mapping) else {}

    def generate_token(self, form_name: str) -> str:
        """Issue a fresh token for ``form_name``, replacing any live one.

        Raises:
            SessionUnavailable: there is no session to store the token in
            TypeError: ``form_name`` is not a string
            ValueError: ``form_name`` is empty or contains the separator
        """
        _check_form_name(form_name)
        if not self.store.is_available():
            raise SessionUnavailable()

        value = secrets.token_hex(TOKEN_BYTES)
        tokens = self._tokens()
        tokens[form_name] = value
        self.store.set(self.session_key, tokens)
        logger.debug("Issued CSRF token for form %s", form_name)
        return str(NamedToken(form_name, value))

    def get_token(self, form_name: str) -> str:
        """Return the live token for ``form_name``, issuing one if needed.

        Repeated calls return the same string until the token is consumed,
        so re-rendering a form keeps the token the user is about to submit.
        """
        _check_form_name(form_name)
        existing = self._tokens().get(form_name)
        if not isinstance(existing, str):
            return self.generate_token(form_name)
        return str(NamedToken(form_name, existing))

    def get_csrf_token(self, form_name: str) -> CSRFToken:
        return CSRFToken(self.get_token(form_name))

    def has_token(self, form_name: str) -> bool:
        return isinstance(self._tokens().get(form_name), str)

    def validate_token(self, submitted: Any) -> bool:
        """Check a submitted ``form_name:value`` string and consume it.

        Never raises. Every kind of failure (missing, malformed, unknown form,
        wrong value, no session) returns False and leaves the session as it
        was. A match removes the token so it cannot be replayed.
        """
        named = NamedToken.parse(submitted)
        if named is None:
            return False

        try:
            accepted = self.store.take_if_equals(self.session_key, named.form_name, named.value)
        except SessionUnavailable:
            logger.warning("CSRF validation attempted without a session")
            return False

        if accepted:
            logger.debug("Consumed CSRF token for form %s", named.form_name)
        return accepted
