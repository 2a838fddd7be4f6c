# settings.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

import pytz

from errors import StartupError

# ------------------- Default settings -------------------
DEFAULT_SETTINGS: Dict[str, Any] = {
    "token": None,
    "port": 8080,
    "log_level": logging.INFO,
    "keep_alive": True,
    "runtime_log": {
        "channel_id": None,
        "timezone": "Europe/London",
    },
}

_FALSEY = {"0", "false", "no", "off"}


def _int_or_none(raw: Optional[str]) -> Optional[int]:
    raw = (raw or "").strip()
    return int(raw) if raw.isdigit() else None


def ensure_shape(settings: Dict[str, Any]) -> Dict[str, Any]:
    settings.setdefault("token", None)
    settings.setdefault("port", DEFAULT_SETTINGS["port"])
    settings.setdefault("log_level", DEFAULT_SETTINGS["log_level"])
    settings.setdefault("keep_alive", DEFAULT_SETTINGS["keep_alive"])

    settings.setdefault("runtime_log", {})
    if not isinstance(settings["runtime_log"], dict):
        settings["runtime_log"] = {}
    for k, v in DEFAULT_SETTINGS["runtime_log"].items():
        settings["runtime_log"].setdefault(k, v)

    return settings


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Build settings from the process environment.

    DISCORD_TOKEN is required, everything else has a default.
    """
    env = os.environ if environ is None else environ

    token = (env.get("DISCORD_TOKEN") or "").strip()
    if not token:
        raise StartupError("Expected a DISCORD_TOKEN in the environment")

    level_name = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise StartupError(f"Unknown LOG_LEVEL: {level_name}")

    tz_name = (env.get("RUNTIME_LOG_TZ") or DEFAULT_SETTINGS["runtime_log"]["timezone"]).strip()
    try:
        pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise StartupError(f"Unknown RUNTIME_LOG_TZ: {tz_name}")

    port = _int_or_none(env.get("PORT")) or DEFAULT_SETTINGS["port"]

    return ensure_shape({
        "token": token,
        "port": port,
        "log_level": level,
        "keep_alive": (env.get("KEEP_ALIVE") or "1").strip().lower() not in _FALSEY,
        "runtime_log": {
            "channel_id": _int_or_none(env.get("RUNTIME_LOG_CHANNEL_ID")),
            "timezone": tz_name,
        },
    })
