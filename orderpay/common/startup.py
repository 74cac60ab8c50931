"""Startup-time helpers for safe config logging."""

from sqlalchemy.engine import make_url

from orderpay.common.config import CommonSettings
from orderpay.common.logging import logger


def _display(name: str, value) -> object:
    """Render one setting with secrets and DSN passwords masked."""

    if value is None or value == "":
        return "<unset>"
    if any(secret in name for secret in ["key_secret", "password", "token"]):
        return "<redacted>"
    if name == "database_url":
        return make_url(value).render_as_string(hide_password=True)
    return value


def log_startup_config(config: CommonSettings, names: list[str]) -> None:
    """Log selected settings for quick troubleshooting."""

    snapshot = {"service": config.service_name}
    for name in names:
        snapshot[name] = _display(name, getattr(config, name))
    logger.info("startup_config=%s", snapshot)
