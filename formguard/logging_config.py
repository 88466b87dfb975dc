import logging
import logging.config
import os
import re


class SecretMaskingFilter(logging.Filter):
    """Redacts CSRF tokens and session secrets from log messages and arguments.

    Applies to both record.msg and record.args, so a token passed as a
    %-style argument is masked as well.
    """

    SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
        # Composite form tokens: form_name:<64 hex>
        (re.compile(r"\b([A-Za-z0-9_.\-]+:)[0-9a-fA-F]{64}\b"), r"\1***"),
        # Bare token values
        (re.compile(r"\b[0-9a-fA-F]{64}\b"), "***"),
        # Form fields and headers carrying a token
        (
            re.compile(r"\b(csrf_token|X-CSRF-Token)\b(\s*[:=]\s*)([^\s,;&]+)", re.IGNORECASE),
            r"\1\2***",
        ),
        # Session cookies
        (re.compile(r"\b((?:Set-)?Cookie\s*:\s*)([^\r\n]+)", re.IGNORECASE), r"\1***"),
        # Key-value with known secret names
        (
            re.compile(r"\b(SECRET_KEY|ADMIN_PASSWORD_HASH|password)\b(\s*[:=]\s*)([^\s,;]+)", re.IGNORECASE),
            r"\1\2***",
        ),
    ]

    def _mask(self, text: str) -> str:
        masked = text
        for pattern, repl in self.SECRET_PATTERNS:
            masked = pattern.sub(repl, masked)
        return masked

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask(v) if isinstance(v, str) else v for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask(a) if isinstance(a, str) else a for a in record.args)
        return True


def setup_logging(level: str = "INFO") -> None:
    effective_level = os.getenv("LOG_LEVEL", level).upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": effective_level,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": effective_level,
        },
    }
    logging.config.dictConfig(config)

    # Attach secret masking filter to all handlers
    secret_filter = SecretMaskingFilter()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.addFilter(secret_filter)
