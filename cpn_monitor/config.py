import logging
import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()

CP_BASE_URL = os.getenv("CPN_CP_BASE_URL", "https://na.chargepoint.com")
CP_USERNAME = os.getenv("CPN_CP_USERNAME")
CP_PASSWORD = os.getenv("CPN_CP_PASSWORD")
CP_DEVICE_ID = os.getenv("CPN_CP_DEVICE_ID", "93737")

SLACK_HOOK_URL = os.getenv("CPN_SLACK_HOOK_URL")
SLACK_USER_IDS_RAW = os.getenv("CPN_SLACK_USER_IDS", "")
DEBUG_MODE = os.getenv("CPN_DEBUG_MODE", "false").lower() in ("1", "true", "yes")


def env_seconds(name: str, legacy_name: str, default: float, legacy_divisor: int = 1) -> float:
    """Read a duration in seconds, falling back to the pre-`_SEC` variable name.

    The legacy polling and auth delays were given in milliseconds, hence
    ``legacy_divisor``.
    """
    raw = os.getenv(name)
    if raw is not None:
        return int(raw)
    legacy = os.getenv(legacy_name)
    if legacy is not None:
        value = int(legacy)
        return value // legacy_divisor if value % legacy_divisor == 0 else value / legacy_divisor
    return default


POLLING_DELAY_SEC = env_seconds("CPN_POLLING_DELAY_SEC", "CPN_POLLING_DELAY", 60, legacy_divisor=1000)
AUTH_DELAY_SEC = env_seconds("CPN_AUTH_DELAY_SEC", "CPN_AUTH_DELAY", 30 * 60, legacy_divisor=1000)
WARNING_OFFSET_SEC = env_seconds("CPN_WARNING_OFFSET_SEC", "CPN_WARNING_OFFSET", 5 * 60)

# working hours are [start, end) in the monitor's timezone
WORK_START_HOUR = int(os.getenv("CPN_WORK_START_HOUR", "7"))
WORK_END_HOUR = int(os.getenv("CPN_WORK_END_HOUR", "19"))
OFF_HOURS_DELAY_SEC = int(os.getenv("CPN_OFF_HOURS_DELAY_SEC", str(15 * 60)))
WEEKEND_DELAY_SEC = int(os.getenv("CPN_WEEKEND_DELAY_SEC", str(60 * 60)))

HTTP_TIMEOUT_SEC = float(os.getenv("CPN_HTTP_TIMEOUT_SEC", "15"))
TIMEZONE = os.getenv("CPN_TIMEZONE")  # None -> host local time
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def parse_user_ids(raw: str) -> Dict[str, str]:
    """Parse ``name:SLACKID,name2:SLACKID2`` into a name -> Slack id map."""
    user_ids: Dict[str, str] = {}
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, user_id = entry.partition(":")
        name, user_id = name.strip(), user_id.strip()
        if not sep or not name or not user_id:
            logging.warning(f"Skipping malformed Slack user mapping: {entry!r}")
            continue
        user_ids[name] = user_id
    return user_ids


def missing_settings(debug: bool = DEBUG_MODE) -> List[str]:
    missing = []
    if not CP_USERNAME:
        missing.append("CPN_CP_USERNAME")
    if not CP_PASSWORD:
        missing.append("CPN_CP_PASSWORD")
    if not debug and not SLACK_HOOK_URL:
        missing.append("CPN_SLACK_HOOK_URL")
    return missing


SLACK_USER_IDS = parse_user_ids(SLACK_USER_IDS_RAW)
