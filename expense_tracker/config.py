# expense_tracker/config.py

import os

DEFAULT_API_BASE = "http://localhost:8080"
SUPPORTED_LOCALES = ("en", "th")


def _parse_timeout(raw):
    if raw is None or not str(raw).strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"EXPENSE_API_TIMEOUT must be a number, got {raw!r}")
    return value if value > 0 else None


class Settings:
    """Runtime configuration, read from the environment"""

    def __init__(self, api_base=None, timeout=None, locale=None, log_level=None):
        self.api_base = (api_base or DEFAULT_API_BASE).rstrip("/")
        self.timeout = timeout
        self.locale = locale if locale in SUPPORTED_LOCALES else "en"
        self.log_level = (log_level or "INFO").upper()

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            api_base=env.get("EXPENSE_API_BASE", DEFAULT_API_BASE),
            timeout=_parse_timeout(env.get("EXPENSE_API_TIMEOUT")),
            locale=env.get("EXPENSE_LOCALE", "en"),
            log_level=env.get("EXPENSE_LOG_LEVEL", "INFO"),
        )

    def __repr__(self):
        return f"Settings(api_base={self.api_base!r}, timeout={self.timeout!r}, locale={self.locale!r})"
