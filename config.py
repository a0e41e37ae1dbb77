"""
config.py
App configuration handed to the directory client.

- api_url: durable, saved in the local settings table (falls back to GYM_API_URL)
- admin password: session-scoped, kept in a session mapping (st.session_state in the app)
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import MutableMapping

import db
from errors import ValidationError

logger = logging.getLogger(__name__)

API_URL_KEY = "api_url"
PASSWORD_KEY = "gym_admin_password"
DEFAULT_TIMEOUT = 15.0
PASSWORD_PARAM_RE = re.compile(r"(password=)[^&\s\"']*")


class RedactPasswordFilter(logging.Filter):
    """Masks password=... query parameters in log records (urllib3 logs full request lines)."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "password=" in message:
            record.msg = PASSWORD_PARAM_RE.sub(r"\1***", message)
            record.args = ()
        return True


def configure_logging(level: str | None = None) -> None:
    level = (level or os.environ.get("GYM_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # The admin password travels in the getAll query string
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    pool_logger = logging.getLogger("urllib3.connectionpool")
    if not any(isinstance(f, RedactPasswordFilter) for f in pool_logger.filters):
        pool_logger.addFilter(RedactPasswordFilter())


def _timeout_from_env() -> float:
    raw = os.environ.get("GYM_API_TIMEOUT")
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ValidationError(f"GYM_API_TIMEOUT must be a number of seconds, got {raw!r}") from None
    if timeout <= 0:
        raise ValidationError("GYM_API_TIMEOUT must be greater than zero")
    return timeout


class AppConfig:
    def __init__(self, session: MutableMapping | None = None, timeout: float | None = None):
        self.session = session if session is not None else {}
        if timeout is None:
            timeout = _timeout_from_env()
        self.timeout = timeout

    @classmethod
    def load(cls, session: MutableMapping | None = None) -> "AppConfig":
        """Create the settings table if needed and bind to the given session store."""
        db.init_db()
        return cls(session=session)

    # ---------- endpoint (durable) ----------

    @property
    def api_url(self) -> str:
        return db.get_setting(API_URL_KEY) or os.environ.get("GYM_API_URL", "")

    def save_api_url(self, url: str) -> None:
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            raise ValidationError("API URL must start with http:// or https://")
        db.set_setting(API_URL_KEY, url)
        logger.info("API URL saved")

    def clear_api_url(self) -> None:
        db.delete_setting(API_URL_KEY)

    # ---------- admin credential (session only) ----------

    @property
    def admin_password(self) -> str:
        return self.session.get(PASSWORD_KEY) or ""

    def set_admin_password(self, password: str) -> None:
        self.session[PASSWORD_KEY] = password

    def clear_admin_password(self) -> None:
        self.session.pop(PASSWORD_KEY, None)
