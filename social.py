"""
Users, the follow graph and aura.

Following is mirrored on both user documents (A.following <-> B.followers).
Both sides are written under one lock so concurrent toggles cannot interleave.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from config import (
    BIO_MAX_LENGTH,
    COMMENTS_PAGE_SIZES,
    NICKNAME_MAX_LENGTH,
    NICKNAME_MIN_LENGTH,
)
from errors import NotFoundError, SelfFollowError, ValidationError
from keyboards import PRIVACY_FLAGS
from models import COMMENTS, CONFESSIONS, MESSAGES, USERS, ConfessionStatus, User, utc_now_iso
from store import EntityStore

logger = logging.getLogger(__name__)

RANKS = (
    (100, "Confession Legend"),
    (50, "Community Star"),
    (25, "Regular Contributor"),
    (10, "Active Member"),
)


@dataclass
class FollowResult:
    following: bool
    target_aura: int


@dataclass
class UserStats:
    confessions: int
    comments: int
    messages_sent: int
    followers: int
    following: int
    aura: int
    rank: str
    engagement_rate: int


def rank_for(approved_confessions: int) -> str:
    for threshold, name in RANKS:
        if approved_confessions > threshold:
            return name
    return "New User"


class SocialGraph:
    def __init__(self, store: EntityStore):
        self.store = store
        self._graph_lock = asyncio.Lock()

    # ------------------ Users ------------------
    def get_user(self, user_id) -> Optional[User]:
        doc = self.store.get(USERS, str(user_id))
        return User.from_doc(doc) if doc else None

    def require_user(self, user_id) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("❌ User not found.")
        return user

    def ensure_user(self, user_id, username: Optional[str] = None) -> User:
        """Create the user on first interaction, otherwise refresh last_seen."""
        user = self.get_user(user_id)
        if user is None:
            user = User(user_id=str(user_id), username=username)
            self.store.set(USERS, user.user_id, user.to_doc())
            logger.info("New user created: %s", user.user_id)
            return user
        self.touch(user.user_id)
        return user

    def touch(self, user_id) -> None:
        self.store.update(USERS, str(user_id), {"last_seen": utc_now_iso()})

    def _update(self, user_id, fields) -> None:
        fields = dict(fields)
        fields["last_seen"] = utc_now_iso()
        self.store.update(USERS, str(user_id), fields)

    # ------------------ Follow graph ------------------
    async def toggle_follow(self, follower_id, target_id) -> FollowResult:
        follower_id, target_id = str(follower_id), str(target_id)
        if follower_id == target_id:
            raise SelfFollowError()

        async with self._graph_lock:
            follower = self.require_user(follower_id)
            target = self.require_user(target_id)

            if target_id in follower.following:
                following = [u for u in follower.following if u != target_id]
                followers = [u for u in target.followers if u != follower_id]
                self._update(follower_id, {"following": following})
                self._update(target_id, {"followers": followers})
                logger.info("%s unfollowed %s", follower_id, target_id)
                return FollowResult(following=False, target_aura=target.aura)

            following = follower.following + [target_id]
            followers = target.followers if follower_id in target.followers else target.followers + [follower_id]
            aura = target.aura + 1
            self._update(follower_id, {"following": following})
            self._update(target_id, {"followers": followers, "aura": aura})
            logger.info("%s followed %s (aura now %s)", follower_id, target_id, aura)
            return FollowResult(following=True, target_aura=aura)

    # ------------------ Profile ------------------
    def set_nickname(self, user_id, nickname: Optional[str]) -> str:
        nickname = (nickname or "").strip()
        if len(nickname) < NICKNAME_MIN_LENGTH:
            raise ValidationError(f"❌ Nickname too short. Minimum {NICKNAME_MIN_LENGTH} characters.")
        if len(nickname) > NICKNAME_MAX_LENGTH:
            raise ValidationError(f"❌ Nickname too long. Maximum {NICKNAME_MAX_LENGTH} characters.")
        self._update(user_id, {"nickname": nickname})
        return nickname

    def set_bio(self, user_id, bio: Optional[str]) -> str:
        bio = (bio or "").strip()
        if not bio:
            raise ValidationError("❌ Bio cannot be empty.")
        if len(bio) > BIO_MAX_LENGTH:
            raise ValidationError(f"❌ Bio too long. Maximum {BIO_MAX_LENGTH} characters.")
        self._update(user_id, {"bio": bio})
        return bio

    def set_emoji(self, user_id, emoji: str) -> str:
        self._update(user_id, {"profile_emoji": emoji or "None"})
        return emoji or "None"

    def toggle_privacy(self, user_id, flag: str) -> bool:
        if flag not in PRIVACY_FLAGS:
            raise ValidationError(f"❌ Unknown privacy setting: {flag}")
        user = self.require_user(user_id)
        privacy = dict(user.privacy)
        privacy[flag] = not privacy.get(flag, False)
        self._update(user_id, {"privacy": privacy})
        return privacy[flag]

    def set_comments_per_page(self, user_id, size: int) -> int:
        if size not in COMMENTS_PAGE_SIZES:
            raise ValidationError("❌ Unsupported page size.")
        user = self.require_user(user_id)
        settings = dict(user.settings)
        settings["comments_per_page"] = size
        self._update(user_id, {"settings": settings})
        return size

    def toggle_notifications(self, user_id) -> bool:
        user = self.require_user(user_id)
        settings = dict(user.settings)
        settings["notifications"] = not settings.get("notifications", True)
        self._update(user_id, {"settings": settings})
        return settings["notifications"]

    def stats(self, user_id) -> UserStats:
        user = self.require_user(user_id)
        uid = str(user_id)
        confessions = len([
            r for r in self.store.query(CONFESSIONS, "user_id", "==", uid)
            if r.get("status") == ConfessionStatus.APPROVED.value
        ])
        comments = len(self.store.query(COMMENTS, "user_id", "==", uid))
        messages = len(self.store.query(MESSAGES, "from_user_id", "==", uid))
        engagement = min(100, (comments + messages) * 5) if confessions > 0 else 0
        return UserStats(
            confessions=confessions,
            comments=comments,
            messages_sent=messages,
            followers=len(user.followers),
            following=len(user.following),
            aura=user.aura,
            rank=rank_for(confessions),
            engagement_rate=engagement,
        )
