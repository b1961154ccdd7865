"""
Runtime configuration for the confession bot.

Environment vars (exact names expected):
    BOT_TOKEN
    ADMIN_IDS          comma separated moderator ids
    CHANNEL_ID         shared feed the approved confessions are posted to
    SUPABASE_URL
    SUPABASE_KEY
    PORT
    LOG_LEVEL
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

# ------------------ Limits ------------------
SUBMISSION_COOLDOWN_SECONDS = 60

CONFESSION_MIN_LENGTH = 5
CONFESSION_MAX_LENGTH = 1000
COMMENT_MIN_LENGTH = 2
COMMENT_MAX_LENGTH = 500
MESSAGE_MIN_LENGTH = 2
MESSAGE_MAX_LENGTH = 1000
NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 20
BIO_MAX_LENGTH = 100

COMMENTS_PAGE_SIZES = (10, 15, 20, 30, 50)
DEFAULT_COMMENTS_PER_PAGE = 15


@dataclass
class Settings:
    bot_token: str
    admin_ids: List[str] = field(default_factory=list)
    channel_id: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    port: int = 5000
    log_level: str = "INFO"

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def parse_admin_ids(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ

    bot_token = env.get("BOT_TOKEN")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN env var is required")

    supabase_url = env.get("SUPABASE_URL")
    supabase_key = env.get("SUPABASE_KEY")
    if bool(supabase_url) != bool(supabase_key):
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set together")

    return Settings(
        bot_token=bot_token,
        admin_ids=parse_admin_ids(env.get("ADMIN_IDS")),
        channel_id=env.get("CHANNEL_ID") or None,
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        port=int(env.get("PORT", "5000")),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
