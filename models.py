"""
Data models for the confession bot.
Documents are stored as plain dicts; these dataclasses convert to and from them.
"""

import time
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from config import DEFAULT_COMMENTS_PER_PAGE

USERS = "users"
CONFESSIONS = "confessions"
COMMENTS = "comments"
MESSAGES = "private_messages"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConfessionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def default_privacy() -> Dict[str, bool]:
    return {
        "show_confessions": False,
        "show_comments": True,
        "show_following": False,
        "show_followers": False,
        "allow_chats": True,
    }


def default_settings() -> Dict[str, Any]:
    return {"comments_per_page": DEFAULT_COMMENTS_PER_PAGE, "notifications": True}


@dataclass
class User:
    """A bot user. Followers/following are lists of user ids kept free of duplicates."""
    user_id: str
    username: Optional[str] = None
    nickname: str = "Anonymous"
    bio: str = "No bio set"
    profile_emoji: str = "None"
    aura: int = 0
    followers: List[str] = field(default_factory=list)
    following: List[str] = field(default_factory=list)
    privacy: Dict[str, bool] = field(default_factory=default_privacy)
    settings: Dict[str, Any] = field(default_factory=default_settings)
    joined_at: str = field(default_factory=utc_now_iso)
    last_seen: str = field(default_factory=utc_now_iso)

    @property
    def display_name(self) -> str:
        if self.profile_emoji and self.profile_emoji != "None":
            return f"{self.profile_emoji} {self.nickname}"
        return self.nickname

    def to_doc(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "User":
        privacy = default_privacy()
        privacy.update(doc.get("privacy") or {})
        settings = default_settings()
        settings.update(doc.get("settings") or {})
        return cls(
            user_id=str(doc["user_id"]),
            username=doc.get("username"),
            nickname=doc.get("nickname") or "Anonymous",
            bio=doc.get("bio") or "No bio set",
            profile_emoji=doc.get("profile_emoji") or "None",
            aura=int(doc.get("aura") or 0),
            followers=[str(x) for x in doc.get("followers") or []],
            following=[str(x) for x in doc.get("following") or []],
            privacy=privacy,
            settings=settings,
            joined_at=doc.get("joined_at") or utc_now_iso(),
            last_seen=doc.get("last_seen") or utc_now_iso(),
        )


@dataclass
class Confession:
    confession_id: str
    user_id: str
    text: str
    hashtags: List[str] = field(default_factory=list)
    status: ConfessionStatus = ConfessionStatus.PENDING
    confession_number: Optional[int] = None
    comment_count: int = 0
    created_at: str = field(default_factory=utc_now_iso)
    submitted_at: str = field(default_factory=utc_now_iso)
    approved_at: Optional[str] = None
    rejected_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    moderator_id: Optional[str] = None
    channel_message_id: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ConfessionStatus.PENDING

    def preview(self, limit: int = 100) -> str:
        return self.text[:limit] + ("..." if len(self.text) > limit else "")

    def to_doc(self) -> Dict[str, Any]:
        doc = asdict(self)
        doc["status"] = self.status.value
        return doc

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Confession":
        number = doc.get("confession_number")
        return cls(
            confession_id=doc["confession_id"],
            user_id=str(doc["user_id"]),
            text=doc.get("text", ""),
            hashtags=list(doc.get("hashtags") or []),
            status=ConfessionStatus(doc.get("status", "pending")),
            confession_number=int(number) if number is not None else None,
            comment_count=int(doc.get("comment_count") or 0),
            created_at=doc.get("created_at") or utc_now_iso(),
            submitted_at=doc.get("submitted_at") or utc_now_iso(),
            approved_at=doc.get("approved_at"),
            rejected_at=doc.get("rejected_at"),
            rejection_reason=doc.get("rejection_reason"),
            moderator_id=doc.get("moderator_id"),
            channel_message_id=doc.get("channel_message_id"),
        )


@dataclass
class Comment:
    comment_id: str
    confession_id: str
    user_id: str
    text: str
    is_anonymous: bool = True
    created_at: str = field(default_factory=utc_now_iso)

    def to_doc(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Comment":
        return cls(
            comment_id=doc["comment_id"],
            confession_id=doc["confession_id"],
            user_id=str(doc["user_id"]),
            text=doc.get("text", ""),
            is_anonymous=True,
            created_at=doc.get("created_at") or utc_now_iso(),
        )


@dataclass
class Message:
    message_id: str
    from_user_id: str
    to_user_id: str
    text: str
    participants: List[str] = field(default_factory=list)
    read: bool = False
    is_admin_message: bool = False
    created_at: str = field(default_factory=utc_now_iso)

    def to_doc(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Message":
        return cls(
            message_id=doc["message_id"],
            from_user_id=str(doc["from_user_id"]),
            to_user_id=str(doc["to_user_id"]),
            text=doc.get("text", ""),
            participants=[str(x) for x in doc.get("participants") or []],
            read=bool(doc.get("read")),
            is_admin_message=bool(doc.get("is_admin_message")),
            created_at=doc.get("created_at") or utc_now_iso(),
        )


class IdFactory:
    """
    Builds provenance ids like confess_<author>_<unixMillis>.
    The millisecond part is strictly increasing across all ids issued by
    this process, so no prefix ever sees the same value twice.
    """

    def __init__(self, clock=None):
        self._clock = clock or time.time
        self._last: Optional[int] = None

    def _millis(self) -> int:
        millis = int(self._clock() * 1000)
        if self._last is not None and millis <= self._last:
            millis = self._last + 1
        self._last = millis
        return millis

    def confession_id(self, author_id: str) -> str:
        return f"confess_{author_id}_{self._millis()}"

    def comment_id(self, author_id: str) -> str:
        return f"comment_{author_id}_{self._millis()}"

    def message_id(self, from_id: str, to_id: str) -> str:
        return f"msg_{from_id}_{to_id}_{self._millis()}"
