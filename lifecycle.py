"""
Confession lifecycle: submit -> pending -> approved | rejected.

Approved and rejected are terminal. The public confession number is handed
out only on approval and is recovered from the store at startup.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from config import CONFESSION_MIN_LENGTH, CONFESSION_MAX_LENGTH
from errors import AlreadyDecidedError, DeliveryError, NotFoundError, ValidationError
from keyboards import channel_kb
from models import CONFESSIONS, Confession, ConfessionStatus, IdFactory, utc_now_iso
from ratelimit import CooldownLimiter
from store import EntityStore

logger = logging.getLogger(__name__)

HASHTAG_RE = re.compile(r"#\w+")

SubmittedListener = Callable[[Confession, Optional[str]], Awaitable[None]]


def extract_hashtags(text: str) -> List[str]:
    seen = []
    for tag in HASHTAG_RE.findall(text or ""):
        if tag not in seen:
            seen.append(tag)
    return seen


def validate_confession_text(text: Optional[str]) -> str:
    if not text or len(text.strip()) < CONFESSION_MIN_LENGTH:
        raise ValidationError(f"❌ Confession too short. Minimum {CONFESSION_MIN_LENGTH} characters.")
    if len(text) > CONFESSION_MAX_LENGTH:
        raise ValidationError(f"❌ Confession too long. Maximum {CONFESSION_MAX_LENGTH} characters.")
    return text.strip()


def feed_text(confession: Confession) -> str:
    hashtags = f"\n\n{' '.join(confession.hashtags)}" if confession.hashtags else ""
    return f"#{confession.confession_number}\n\n{confession.text}{hashtags}"


@dataclass
class Decision:
    confession: Confession
    published: bool = False
    author_notified: bool = False


class ConfessionLifecycle:
    def __init__(self, store: EntityStore, transport, channel_id=None,
                 limiter: Optional[CooldownLimiter] = None, ids: Optional[IdFactory] = None):
        self.store = store
        self.transport = transport
        self.channel_id = channel_id
        self.limiter = limiter or CooldownLimiter()
        self.ids = ids or IdFactory()
        self._counter = 0
        # Guards check -> reserve number -> conditional write for decisions.
        self._decision_lock = asyncio.Lock()
        self._submitted_listeners: List[SubmittedListener] = []

    # ------------------ Sequence counter ------------------
    @property
    def counter(self) -> int:
        return self._counter

    def recover_counter(self) -> int:
        rows = self.store.query(
            CONFESSIONS, "status", "==", ConfessionStatus.APPROVED.value,
            order_by="confession_number", descending=True, limit=1,
        )
        highest = rows[0].get("confession_number") if rows else None
        self._counter = int(highest or 0)
        logger.info("Confession counter recovered at %s", self._counter)
        return self._counter

    # ------------------ Reads ------------------
    def get(self, confession_id: str) -> Confession:
        doc = self.store.get(CONFESSIONS, confession_id)
        if not doc:
            raise NotFoundError("❌ Confession not found.")
        return Confession.from_doc(doc)

    def get_published(self, confession_id: str) -> Confession:
        confession = self.get(confession_id)
        if confession.status != ConfessionStatus.APPROVED:
            raise NotFoundError("❌ Confession not found or not published.")
        return confession

    def latest(self, limit: int = 10) -> List[Confession]:
        rows = self.store.query(
            CONFESSIONS, "status", "==", ConfessionStatus.APPROVED.value,
            order_by="confession_number", descending=True, limit=limit,
        )
        return [Confession.from_doc(r) for r in rows]

    def pending(self, limit: int = 10) -> List[Confession]:
        rows = self.store.query(
            CONFESSIONS, "status", "==", ConfessionStatus.PENDING.value,
            order_by="created_at", limit=limit,
        )
        return [Confession.from_doc(r) for r in rows]

    def next_after(self, confession_id: str) -> Optional[Confession]:
        """The next older published confession; wraps to the newest one."""
        current = self.get_published(confession_id)
        rows = self.store.query(
            CONFESSIONS, "confession_number", "<", current.confession_number,
            order_by="confession_number", descending=True, limit=1,
        )
        if rows:
            return Confession.from_doc(rows[0])
        newest = self.latest(limit=1)
        if newest and newest[0].confession_id != current.confession_id:
            return newest[0]
        return None

    def search_hashtag(self, tag: str, limit: int = 10) -> List[Confession]:
        tag = tag.strip()
        if not tag.startswith("#"):
            tag = f"#{tag}"
        rows = self.store.query(CONFESSIONS, "hashtags", "contains", tag, order_by="confession_number", descending=True)
        found = [Confession.from_doc(r) for r in rows if r.get("status") == ConfessionStatus.APPROVED.value]
        return found[:limit]

    def count_by_author(self, user_id: str, approved_only: bool = False) -> int:
        rows = self.store.query(CONFESSIONS, "user_id", "==", str(user_id))
        if approved_only:
            rows = [r for r in rows if r.get("status") == ConfessionStatus.APPROVED.value]
        return len(rows)

    # ------------------ Submit ------------------
    def on_submitted(self, listener: SubmittedListener) -> None:
        self._submitted_listeners.append(listener)

    async def submit(self, author_id, text: Optional[str], author_username: Optional[str] = None) -> Confession:
        author_id = str(author_id)
        clean = validate_confession_text(text)
        self.limiter.check(author_id)

        now = utc_now_iso()
        confession = Confession(
            confession_id=self.ids.confession_id(author_id),
            user_id=author_id,
            text=clean,
            hashtags=extract_hashtags(clean),
            status=ConfessionStatus.PENDING,
            created_at=now,
            submitted_at=now,
        )
        self.store.set(CONFESSIONS, confession.confession_id, confession.to_doc())
        self.limiter.record(author_id)
        logger.info("Confession %s submitted (pending)", confession.confession_id)

        for listener in self._submitted_listeners:
            await listener(confession, author_username)
        return confession

    # ------------------ Decisions ------------------
    async def _decide(self, confession_id: str, fields_for: Callable[[Confession], dict]) -> Confession:
        async with self._decision_lock:
            confession = self.get(confession_id)
            if not confession.is_pending:
                raise AlreadyDecidedError(confession_id, confession.status.value)
            fields = fields_for(confession)
            applied = self.store.update_if(
                CONFESSIONS, confession_id, fields, {"status": ConfessionStatus.PENDING.value}
            )
            if not applied:
                # Another process won the conditional write.
                current = self.get(confession_id)
                raise AlreadyDecidedError(confession_id, current.status.value)
            doc = confession.to_doc()
            doc.update(fields)
            return Confession.from_doc(doc)

    async def approve(self, confession_id: str, moderator_id) -> Decision:
        def fields_for(_confession):
            return {
                "status": ConfessionStatus.APPROVED.value,
                "confession_number": self._counter + 1,
                "approved_at": utc_now_iso(),
                "moderator_id": str(moderator_id),
            }

        confession = await self._decide(confession_id, fields_for)
        self._counter = confession.confession_number
        logger.info("Confession %s approved as #%s by %s", confession_id, confession.confession_number, moderator_id)

        decision = Decision(confession)
        decision.published = await self._publish(confession)
        decision.author_notified = await self._notify_author(
            confession.user_id,
            f"🎉 Your Confession #{confession.confession_number} was approved!\n\n"
            "It has been posted to the channel. People can now view and comment on it!\n\n"
            "• People can comment anonymously\n"
            "• You'll get notified of new comments\n"
            "• Build your aura points\n\n"
            "Thank you for sharing! 💖",
        )
        return decision

    async def reject(self, confession_id: str, moderator_id, reason: Optional[str]) -> Decision:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("❌ Rejection reason cannot be empty.")

        def fields_for(_confession):
            return {
                "status": ConfessionStatus.REJECTED.value,
                "rejection_reason": reason,
                "rejected_at": utc_now_iso(),
                "moderator_id": str(moderator_id),
            }

        confession = await self._decide(confession_id, fields_for)
        logger.info("Confession %s rejected by %s", confession_id, moderator_id)

        decision = Decision(confession)
        decision.author_notified = await self._notify_author(
            confession.user_id,
            "❌ Confession Not Approved\n\n"
            "Your confession was not approved for the following reason:\n\n"
            f"📝 Reason: {reason}\n\n"
            "You can submit a new confession following the guidelines.",
        )
        return decision

    # ------------------ Feed ------------------
    async def _publish(self, confession: Confession) -> bool:
        if not self.channel_id:
            logger.warning("CHANNEL_ID not set, confession #%s not posted", confession.confession_number)
            return False
        try:
            link = await self.transport.deep_link(f"conf_{confession.confession_id}")
            message_id = await self.transport.send_message(
                self.channel_id, feed_text(confession), channel_kb(link, confession.comment_count)
            )
        except DeliveryError:
            logger.error("Failed to publish confession #%s to channel", confession.confession_number)
            return False
        self.store.update(CONFESSIONS, confession.confession_id, {"channel_message_id": message_id})
        confession.channel_message_id = message_id
        logger.info("Posted confession #%s to channel", confession.confession_number)
        return True

    async def refresh_channel_button(self, confession: Confession) -> None:
        if not (self.channel_id and confession.channel_message_id):
            return
        try:
            link = await self.transport.deep_link(f"conf_{confession.confession_id}")
            await self.transport.edit_message(
                self.channel_id, confession.channel_message_id, actions=channel_kb(link, confession.comment_count)
            )
        except DeliveryError:
            logger.warning("Failed to update channel markup for %s", confession.confession_id)

    async def _notify_author(self, user_id: str, text: str) -> bool:
        try:
            await self.transport.send_message(user_id, text)
        except DeliveryError:
            logger.warning("Could not notify author %s", user_id)
            return False
        return True
