"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``."""

    platform_id = (platform or sys.platform).lower()
    environ = dict(env or os.environ)
    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


def env_int(name: str, default: int, *, env: Optional[Mapping[str, str]] = None) -> int:
    """Read a positive integer from the environment, falling back to ``default``."""

    raw = (env if env is not None else os.environ).get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value > 0 else default


def env_str(name: str, default: str = "", *, env: Optional[Mapping[str, str]] = None) -> str:
    raw = (env if env is not None else os.environ).get(name)
    if raw is None:
        return default
    return str(raw).strip() or default


APP_NAME = "ClassroomReminders"


DATA_DIR = Path(env_str("REMINDERS_DATA_DIR") or get_default_data_dir(APP_NAME))
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "app.db"


@dataclass(frozen=True)
class GoogleSettings:
    client_id: str = env_str("GOOGLE_CLIENT_ID")
    client_secret: str = env_str("GOOGLE_CLIENT_SECRET")
    redirect_uri: str = env_str("GOOGLE_REDIRECT_URI", "urn:ietf:wg:oauth:2.0:oob")
    token_uri: str = "https://oauth2.googleapis.com/token"
    auth_uri: str = "https://accounts.google.com/o/oauth2/auth"
    scopes: tuple[str, ...] = (
        "https://www.googleapis.com/auth/classroom.courses.readonly",
        "https://www.googleapis.com/auth/classroom.coursework.me.readonly",
        "https://www.googleapis.com/auth/classroom.announcements.readonly",
    )
    # used when the token endpoint omits expires_in
    default_token_lifetime_sec: int = 3600


GOOGLE = GoogleSettings()


@dataclass(frozen=True)
class SyncSettings:
    interval_minutes: int = env_int("CLASSROOM_SYNC_INTERVAL", 15)
    courses_page_size: int = 100
    coursework_page_size: int = 50
    high_priority_window_hours: int = 24
    default_due_hour: int = 23
    default_due_minute: int = 59


SYNC = SyncSettings()


@dataclass(frozen=True)
class ReminderSettings:
    interval_minutes: int = env_int("REMINDER_CHECK_INTERVAL", 5)
    class_lead_minutes: int = 15
    gym_lead_minutes: int = 15
    activity_lead_minutes: int = 15
    timezone: str = env_str("APP_TIMEZONE", "UTC")


REMINDERS = ReminderSettings()


@dataclass(frozen=True)
class PushSettings:
    endpoint: str = env_str("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
    access_token: str = env_str("EXPO_ACCESS_TOKEN")
    timeout_sec: int = env_int("EXPO_PUSH_TIMEOUT", 10)
    # Expo accepts at most 100 messages per request
    max_batch_size: int = 100


PUSH = PushSettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_DIR",
    "DB_PATH",
    "GOOGLE",
    "SYNC",
    "REMINDERS",
    "PUSH",
    "env_int",
    "env_str",
    "get_default_data_dir",
]
