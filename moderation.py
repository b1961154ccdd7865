"""
Moderation fan-out.

Every new confession goes to every moderator with its own Approve/Reject
buttons. Moderators act independently; the lifecycle guarantees that only
the first decision is applied and the others get AlreadyDecidedError.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from context import ConversationContext, Mode
from errors import DeliveryError, NotPermittedError, RejectionPendingError, AlreadyDecidedError
from keyboards import moderation_kb
from lifecycle import ConfessionLifecycle, Decision
from messaging import MessagingService
from models import COMMENTS, CONFESSIONS, USERS, Confession, ConfessionStatus, Message, User
from social import SocialGraph

logger = logging.getLogger(__name__)


@dataclass
class Dashboard:
    users: int
    confessions: int
    comments: int
    pending: int


class ModerationFanout:
    def __init__(self, lifecycle: ConfessionLifecycle, messaging: MessagingService, social: SocialGraph,
                 context: ConversationContext, transport, admin_ids: Iterable[str]):
        self.lifecycle = lifecycle
        self.messaging = messaging
        self.social = social
        self.context = context
        self.transport = transport
        self.admin_ids: List[str] = [str(a) for a in admin_ids]
        lifecycle.on_submitted(self.notify_moderators)

    def is_moderator(self, user_id) -> bool:
        return str(user_id) in self.admin_ids

    def require_moderator(self, user_id) -> None:
        if not self.is_moderator(user_id):
            raise NotPermittedError()

    # ------------------ Fan-out ------------------
    async def notify_moderators(self, confession: Confession, author_username: Optional[str] = None) -> int:
        """Send the review notice to every moderator. Returns how many got it."""
        if not self.admin_ids:
            logger.warning("No ADMIN_IDS configured, confession %s has no reviewer", confession.confession_id)
            return 0
        text = (
            "🤫 New Confession Submission\n\n"
            f"👤 From: {author_username or 'Anonymous'}\n"
            f"🆔 User ID: {confession.user_id}\n"
            f"🆔 Confession ID: {confession.confession_id}\n\n"
            f"Confession Text:\n\"{confession.text}\"\n\n"
            "Admin Actions:"
        )
        actions = moderation_kb(confession.confession_id, confession.user_id)
        delivered = 0
        for admin_id in self.admin_ids:
            try:
                await self.transport.send_message(admin_id, text, actions)
                delivered += 1
                logger.info("Notified admin %s about %s", admin_id, confession.confession_id)
            except DeliveryError:
                logger.error("Admin notify error %s for %s", admin_id, confession.confession_id)
        return delivered

    # ------------------ Decisions ------------------
    async def approve(self, moderator_id, confession_id: str) -> Decision:
        self.require_moderator(moderator_id)
        return await self.lifecycle.approve(confession_id, moderator_id)

    def begin_rejection(self, moderator_id, confession_id: str) -> Confession:
        self.require_moderator(moderator_id)
        confession = self.lifecycle.get(confession_id)
        if not confession.is_pending:
            raise AlreadyDecidedError(confession_id, confession.status.value)

        slot = self.context.get(moderator_id)
        if slot is not None and slot.mode is Mode.REJECTION_REASON and slot.target != confession_id:
            raise RejectionPendingError(slot.target)

        self.context.set_mode(moderator_id, Mode.REJECTION_REASON, confession_id)
        return confession

    async def complete_rejection(self, moderator_id, confession_id: str, reason: Optional[str]) -> Decision:
        self.require_moderator(moderator_id)
        return await self.lifecycle.reject(confession_id, moderator_id, reason)

    # ------------------ Moderator tools ------------------
    def begin_admin_message(self, moderator_id, user_id) -> User:
        self.require_moderator(moderator_id)
        user = self.social.require_user(user_id)
        self.context.set_mode(moderator_id, Mode.ADMIN_MESSAGE, user.user_id)
        return user

    async def send_admin_message(self, moderator_id, user_id, text: Optional[str]) -> Message:
        self.require_moderator(moderator_id)
        return await self.messaging.send_admin_message(moderator_id, user_id, text)

    def view_user(self, moderator_id, user_id):
        self.require_moderator(moderator_id)
        user = self.social.require_user(user_id)
        return user, self.lifecycle.count_by_author(user.user_id)

    def dashboard(self, moderator_id) -> Dashboard:
        self.require_moderator(moderator_id)
        store = self.lifecycle.store
        return Dashboard(
            users=store.count(USERS),
            confessions=store.count(CONFESSIONS),
            comments=store.count(COMMENTS),
            pending=store.count(CONFESSIONS, "status", ConfessionStatus.PENDING.value),
        )

    def pending(self, moderator_id, limit: int = 10) -> List[Confession]:
        self.require_moderator(moderator_id)
        return self.lifecycle.pending(limit)
