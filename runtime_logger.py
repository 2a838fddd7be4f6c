import logging
import os
from datetime import datetime, timedelta
from typing import Any, Dict, Tuple

import discord
import pytz

logger = logging.getLogger(__name__)

# ======================
# CONFIG
# ======================
ERROR_COOLDOWN = timedelta(minutes=5)
_last_error_time: datetime | None = None

TIME_FORMAT = "%d %b %Y · %H:%M:%S"


# ======================
# DEPLOY INFO
# ======================
COMMIT_ENV_VARS = ("RENDER_GIT_COMMIT", "GIT_COMMIT")


def deploy_info() -> Tuple[str, str]:
    """Short commit hash plus how this process came to be running."""
    for name in COMMIT_ENV_VARS:
        commit = os.getenv(name)
        if commit:
            return commit[:7], "New deploy"
    return "unknown", "Restart without deploy info"


def _now(settings: Dict[str, Any]) -> datetime:
    return datetime.now(pytz.timezone(settings["runtime_log"]["timezone"]))


async def _log_channel(client: discord.Client, settings: Dict[str, Any]):
    channel_id = settings["runtime_log"]["channel_id"]
    if not channel_id:
        return None

    try:
        return client.get_channel(channel_id) or await client.fetch_channel(channel_id)
    except discord.HTTPException as e:
        logger.warning("Runtime log channel %s unavailable: %s", channel_id, e)
        return None


async def _post(channel, content: str) -> bool:
    try:
        await channel.send(content)
    except discord.HTTPException as e:
        logger.warning("Couldn't post to runtime log channel: %s", e)
        return False
    return True


# ======================
# RUNTIME LOGGING
# ======================
async def log_startup(client: discord.Client, settings: Dict[str, Any]) -> bool:
    channel = await _log_channel(client, settings)
    if not channel:
        return False

    commit, trigger = deploy_info()
    tz = settings["runtime_log"]["timezone"]

    return await _post(
        channel,
        "🚀 **Role Buttons started**\n"
        f"🧾 Commit: `{commit}`\n"
        f"🔁 Trigger: {trigger}\n"
        f"🕒 {_now(settings).strftime(TIME_FORMAT)} ({tz})"
    )


async def log_error(client: discord.Client, settings: Dict[str, Any], event_method: str) -> bool:
    global _last_error_time

    channel = await _log_channel(client, settings)
    if not channel:
        return False

    now = _now(settings)

    if _last_error_time and now - _last_error_time < ERROR_COOLDOWN:
        return False

    _last_error_time = now

    return await _post(
        channel,
        "💥 **Role Buttons encountered an error**\n"
        f"📍 Event: `{event_method}`\n"
        f"🕒 {now.strftime(TIME_FORMAT)} ({settings['runtime_log']['timezone']})\n"
        "📄 Check the process logs for the full traceback."
    )
