"""
CSRF token value types.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

SEPARATOR = ":"


def _masked(composite: str) -> str:
    form_name, sep, _ = composite.partition(SEPARATOR)
    return f"{form_name}{sep}***" if sep else "***"


@dataclass(frozen=True)
class CSRFToken:
    """Immutable wrapper around a composite token string.

    Keeps a token apart from other strings (page markup in particular) so
    the template layer can refuse anything that is not a token. It does not
    validate the value.
    """

    value: str

    def __post_init__(self):
        if self.value is None:
            raise TypeError("CSRFToken value must not be None")
        if not isinstance(self.value, str):
            raise TypeError(f"CSRFToken value must be str, got {type(self.value).__name__}")

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"CSRFToken({_masked(self.value)!r})"


@dataclass(frozen=True)
class NamedToken:
    """A token value scoped to one form, as sent over the wire."""

    form_name: str
    value: str

    @classmethod
    def parse(cls, submitted: Any) -> Optional["NamedToken"]:
        """Split a submitted ``form_name:value`` string on its first colon.

        Returns None for anything that is not a string containing the
        separator.
        """
        if not isinstance(submitted, str) or SEPARATOR not in submitted:
            return None
        form_name, _, value = submitted.partition(SEPARATOR)
        return cls(form_name=form_name, value=value)

    def __str__(self) -> str:
        return f"{self.form_name}{SEPARATOR}{self.value}"

    def __repr__(self) -> str:
        return f"NamedToken(form_name={self.form_name!r}, value='***')"
