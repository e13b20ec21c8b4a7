"""
Centralized Observability Infrastructure.
Provides structured logging setup and Sentry SDK initialization
governed entirely by environment variables.
"""

import logging
import os
import re
from typing import Any, Dict

import sentry_sdk

log = logging.getLogger(__name__)

# Keys whose values never leave the server
SENSITIVE_KEYS = {"password", "access_token", "refresh_token", "anon_key", "service_role_key", "token", "apikey"}

# Patterns to scrub in logs and Sentry events
SENSITIVE_PATTERNS = [
    re.compile(r"eyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+"),  # JWTs
    re.compile(r"([a-zA-Z0-9_\-]{30,})"),  # Catch tokens/dsn looking strings
]

NOISY_LOGGERS = ("urllib3", "requests", "httpx", "httpcore", "hpack")


def _mask_string(val: str) -> str:
    for pattern in SENSITIVE_PATTERNS:
        val = pattern.sub("[REDACTED]", val)
    return val


def scrub(obj: Any) -> Any:
    """Recursively masks sensitive keys and token-looking strings."""
    if isinstance(obj, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in SENSITIVE_KEYS else scrub(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [scrub(i) for i in obj]
    if isinstance(obj, str):
        return _mask_string(obj)
    return obj


def _scrub_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sentry before_send hook. Scrubs tokens and passwords from stack frame
    locals and request data before they leave the server.
    """
    for exc in event.get("exception", {}).get("values", []):
        for frame in exc.get("stacktrace", {}).get("frames", []):
            if "vars" in frame:
                frame["vars"] = scrub(frame["vars"])
    if "request" in event:
        event["request"] = scrub(event["request"])
    if "extra" in event:
        event["extra"] = scrub(event["extra"])
    return event


def setup_observability() -> None:
    """
    Initializes global system logging and Sentry (if DSN is present).
    Should be called once at application startup.
    """

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    # [2026-02-27 15:00:00] | INFO    | module.name | The message
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        sentry_env = os.getenv("SENTRY_ENV", "development")
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=sentry_env,
            traces_sample_rate=1.0,
            send_default_pii=False,
            before_send=_scrub_sensitive_data
        )
        log.info("Sentry SDK initialized (env: %s)", sentry_env)
    else:
        log.info("SENTRY_DSN not provided. Running without Sentry.")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
