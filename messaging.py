"""Anonymous comments on published confessions and anonymous private messages."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from config import COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH, MESSAGE_MAX_LENGTH, MESSAGE_MIN_LENGTH
from errors import (
    ChatsDisabledError,
    DeliveryError,
    RecipientNotFoundError,
    SelfMessageError,
    ValidationError,
)
from keyboards import comment_notification_kb, private_message_received_kb
from lifecycle import ConfessionLifecycle
from models import COMMENTS, CONFESSIONS, MESSAGES, Comment, Confession, IdFactory, Message, User, utc_now_iso
from social import SocialGraph
from store import EntityStore

logger = logging.getLogger(__name__)


def validate_length(text: Optional[str], minimum: int, maximum: int, what: str) -> str:
    if not text or len(text.strip()) < minimum:
        raise ValidationError(f"❌ {what} too short. Minimum {minimum} characters.")
    if len(text) > maximum:
        raise ValidationError(f"❌ {what} too long. Maximum {maximum} characters.")
    return text.strip()


@dataclass
class CommentPage:
    confession: Confession
    comments: List[Comment]
    page: int
    total_pages: int
    total: int


@dataclass
class CommentResult:
    comment: Comment
    confession: Confession
    total: int
    author_notified: bool = False


@dataclass
class MessageResult:
    message: Message
    recipient: User
    delivered: bool = False


class MessagingService:
    def __init__(self, store: EntityStore, transport, lifecycle: ConfessionLifecycle,
                 social: SocialGraph, ids: Optional[IdFactory] = None):
        self.store = store
        self.transport = transport
        self.lifecycle = lifecycle
        self.social = social
        self.ids = ids or lifecycle.ids

    # ------------------ Comments ------------------
    def comments_for(self, confession_id: str) -> List[Comment]:
        rows = self.store.query(COMMENTS, "confession_id", "==", confession_id, order_by="created_at")
        return [Comment.from_doc(r) for r in rows]

    def comments_page(self, confession_id: str, page: int = 1, per_page: int = 15) -> CommentPage:
        confession = self.lifecycle.get_published(confession_id)
        comments = self.comments_for(confession_id)
        total = len(comments)
        total_pages = max(1, math.ceil(total / per_page))
        page = max(1, min(page, total_pages))
        start = (page - 1) * per_page
        return CommentPage(confession, comments[start:start + per_page], page, total_pages, total)

    async def add_comment(self, confession_id: str, author_id, text: Optional[str]) -> CommentResult:
        author_id = str(author_id)
        confession = self.lifecycle.get_published(confession_id)
        clean = validate_length(text, COMMENT_MIN_LENGTH, COMMENT_MAX_LENGTH, "Comment")

        comment = Comment(
            comment_id=self.ids.comment_id(author_id),
            confession_id=confession_id,
            user_id=author_id,
            text=clean,
        )
        self.store.set(COMMENTS, comment.comment_id, comment.to_doc())

        # Recount rather than increment so the denormalized count self-heals.
        total = self.store.count(COMMENTS, "confession_id", confession_id)
        self.store.update(CONFESSIONS, confession_id, {"comment_count": total})
        confession.comment_count = total
        logger.info("Comment %s added to %s (total %s)", comment.comment_id, confession_id, total)

        await self.lifecycle.refresh_channel_button(confession)

        result = CommentResult(comment, confession, total)
        if confession.user_id != author_id:
            result.author_notified = await self._notify_confession_author(confession, clean, total)
        return result

    async def _notify_confession_author(self, confession: Confession, comment_text: str, total: int) -> bool:
        owner = self.social.get_user(confession.user_id)
        if owner is not None and not owner.settings.get("notifications", True):
            return False
        text = (
            "💬 New Comment on Your Confession!\n\n"
            f"Someone commented on your Confession #{confession.confession_number}:\n\n"
            f"💡 Your Confession:\n\"{confession.preview(100)}\"\n\n"
            f"💬 New Comment:\n\"{comment_text[:200]}\"\n\n"
            f"📊 Total comments: {total}"
        )
        try:
            await self.transport.send_message(confession.user_id, text, comment_notification_kb(confession.confession_id))
        except DeliveryError:
            logger.warning("Could not notify %s about a new comment", confession.user_id)
            return False
        return True

    # ------------------ Private messages ------------------
    def check_recipient(self, from_id, to_id) -> User:
        """Checks that let a conversation start; also re-run when the text arrives."""
        if str(from_id) == str(to_id):
            raise SelfMessageError()
        recipient = self.social.get_user(to_id)
        if recipient is None:
            raise RecipientNotFoundError()
        if not recipient.privacy.get("allow_chats", True):
            raise ChatsDisabledError()
        return recipient

    async def send_private_message(self, from_id, to_id, text: Optional[str]) -> MessageResult:
        from_id, to_id = str(from_id), str(to_id)
        recipient = self.check_recipient(from_id, to_id)
        clean = validate_length(text, MESSAGE_MIN_LENGTH, MESSAGE_MAX_LENGTH, "Message")

        message = Message(
            message_id=self.ids.message_id(from_id, to_id),
            from_user_id=from_id,
            to_user_id=to_id,
            text=clean,
            participants=[from_id, to_id],
            created_at=utc_now_iso(),
        )
        self.store.set(MESSAGES, message.message_id, message.to_doc())
        logger.info("Private message %s stored", message.message_id)

        result = MessageResult(message, recipient)
        body = (
            "💌 New Anonymous Message\n\n"
            "You received an anonymous message:\n\n"
            f"💬 \"{clean}\"\n\n"
            "🔒 The sender's identity is hidden for privacy.\n"
            "You can reply anonymously if you wish."
        )
        try:
            await self.transport.send_message(to_id, body, private_message_received_kb(from_id))
            result.delivered = True
        except DeliveryError:
            logger.warning("Private message %s stored but not delivered", message.message_id)
        return result

    async def send_admin_message(self, moderator_id, to_id, text: Optional[str]) -> Message:
        """Moderator -> user. Unlike private messages this raises when delivery fails."""
        moderator_id, to_id = str(moderator_id), str(to_id)
        if self.social.get_user(to_id) is None:
            raise RecipientNotFoundError()
        clean = validate_length(text, MESSAGE_MIN_LENGTH, MESSAGE_MAX_LENGTH, "Message")

        await self.transport.send_message(
            to_id, f"📩 Message from Admin\n\n{clean}\n\n💬 You can reply to this message."
        )
        message = Message(
            message_id=self.ids.message_id(moderator_id, to_id),
            from_user_id=moderator_id,
            to_user_id=to_id,
            text=clean,
            participants=[moderator_id, to_id],
            is_admin_message=True,
        )
        self.store.set(MESSAGES, message.message_id, message.to_doc())
        logger.info("Admin %s messaged user %s", moderator_id, to_id)
        return message

    def recent_messages(self, user_id, limit: int = 10) -> List[Message]:
        rows = self.store.query(
            MESSAGES, "participants", "contains", str(user_id),
            order_by="created_at", descending=True, limit=limit,
        )
        return [Message.from_doc(r) for r in rows]
