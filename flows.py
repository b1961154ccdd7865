"""
Bot flows: one method per user-visible interaction.

Inbound Telegram updates are turned into TextEvent / ActionEvent by
handlers.py and handled here. Every entry point runs inside _guard, which
turns ConfessionBotError into a message for the user and logs anything else
with a generic apology, so one bad event never takes the bot down.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import keyboards as kb
from config import COMMENTS_PAGE_SIZES, CONFESSION_MAX_LENGTH, DEFAULT_COMMENTS_PER_PAGE
from context import Awaiting, ConversationContext, Mode
from errors import AlreadyDecidedError, ConfessionBotError, DeliveryError, ValidationError
from lifecycle import ConfessionLifecycle
from messaging import MessagingService
from models import Confession, User
from moderation import ModerationFanout
from social import SocialGraph

logger = logging.getLogger(__name__)

GENERIC_APOLOGY = "❌ An error occurred. Please try /start again."

WELCOME_TEXT = (
    "🤫 Welcome to the Confession Bot!\n\n"
    "Share your thoughts anonymously and connect with others.\n\n"
    "Your identity is completely hidden!"
)

RULES_TEXT = (
    "📌 Confession Rules\n\n"
    "✅ Allowed:\n"
    "• Personal thoughts and feelings\n"
    "• Crushes and relationships\n"
    "• Academic struggles\n"
    "• Friendly messages\n\n"
    "❌ Not Allowed:\n"
    "• Hate speech or bullying\n"
    "• Personal attacks\n"
    "• Spam or advertisements\n"
    "• Doxing or sharing private info\n\n"
    "🚫 Violations will result in ban"
)

ABOUT_TEXT = (
    "ℹ️ About\n\n"
    "• 100% Anonymous - No one sees your identity\n"
    "• Admin moderated - Safe content only\n"
    "• Social features - Follow users, build reputation\n"
    "• Private messaging - Connect anonymously\n"
    "• Comment system - Discuss confessions\n\n"
    "Your Telegram ID is stored only to prevent spam and notify you. "
    "It is never shown to other users."
)

# Exact callback actions; everything else is <prefix><param>.
EXACT_ACTIONS = {
    "send_confession", "browse_confessions", "view_latest_confessions", "show_profile",
    "show_rules", "show_about", "main_menu", "noop", "cmd_cancel", "edit_profile",
    "user_settings", "user_stats", "my_messages", "change_nickname", "set_bio",
    "change_emoji", "privacy_settings", "set_comments_page", "toggle_notifications",
    "admin_dashboard", "admin_pending",
}

ACTION_PREFIXES = (
    "browse_comments_", "next_confession_", "private_message_", "privacy_toggle_",
    "message_user_", "view_profile_", "add_comment_", "confession_", "view_user_",
    "set_emoji_", "set_page_", "approve_", "reject_", "follow_",
)


def parse_action(data: str) -> Tuple[str, Optional[str]]:
    data = data or ""
    if data in EXACT_ACTIONS:
        return data, None
    for prefix in ACTION_PREFIXES:
        if data.startswith(prefix) and len(data) > len(prefix):
            return prefix.rstrip("_"), data[len(prefix):]
    return data, None


@dataclass
class TextEvent:
    user_id: str
    chat_id: str
    text: str
    username: Optional[str] = None


@dataclass
class ActionEvent:
    user_id: str
    chat_id: str
    data: str
    event_id: Optional[str] = None
    message_id: Optional[int] = None
    username: Optional[str] = None

    @property
    def parsed(self) -> Tuple[str, Optional[str]]:
        return parse_action(self.data)


class BotFlows:
    def __init__(self, lifecycle: ConfessionLifecycle, moderation: ModerationFanout, social: SocialGraph,
                 messaging: MessagingService, context: ConversationContext, transport):
        self.lifecycle = lifecycle
        self.moderation = moderation
        self.social = social
        self.messaging = messaging
        self.context = context
        self.transport = transport

    # ------------------ Boundary ------------------
    async def _reply(self, chat_id, text: str, actions=None) -> Optional[int]:
        try:
            return await self.transport.send_message(chat_id, text, actions)
        except DeliveryError:
            logger.warning("Could not reply to chat %s", chat_id)
            return None

    async def _edit_or_send(self, chat_id, message_id, text: str, actions=None) -> None:
        if message_id is not None:
            try:
                await self.transport.edit_message(chat_id, message_id, text, actions)
                return
            except DeliveryError:
                pass
        await self._reply(chat_id, text, actions)

    async def _guard(self, chat_id, work, event_id: Optional[str] = None) -> None:
        try:
            await work()
        except ConfessionBotError as e:
            logger.info("Handled %s for chat %s: %s", type(e).__name__, chat_id, e.message)
            await self._report(chat_id, e.message, event_id)
        except Exception:
            logger.exception("Unexpected error while handling an event for chat %s", chat_id)
            await self._report(chat_id, GENERIC_APOLOGY, event_id)

    async def _report(self, chat_id, text: str, event_id: Optional[str]) -> None:
        if event_id is not None:
            await self.transport.acknowledge(event_id, text[:200])
        else:
            await self._reply(chat_id, text)

    # ------------------ Commands ------------------
    async def start(self, event: TextEvent, payload: Optional[str] = None) -> None:
        async def work():
            self.social.ensure_user(event.user_id, event.username)
            if payload and payload.startswith("conf_"):
                await self._show_confession(event.chat_id, None, payload[len("conf_"):])
                return
            await self._reply(event.chat_id, WELCOME_TEXT, kb.main_menu_kb())
        await self._guard(event.chat_id, work)

    async def cancel(self, event: TextEvent) -> None:
        self.context.clear(event.user_id)
        await self._reply(event.chat_id, "✅ Cancelled.", kb.main_menu_kb())

    async def rules(self, event: TextEvent) -> None:
        await self._reply(event.chat_id, RULES_TEXT, kb.back_to_menu_kb())

    async def profile(self, event: TextEvent) -> None:
        async def work():
            user = self.social.ensure_user(event.user_id, event.username)
            await self._reply(event.chat_id, own_profile_text(user), kb.profile_main_kb())
        await self._guard(event.chat_id, work)

    async def admin(self, event: TextEvent) -> None:
        async def work():
            await self._show_dashboard(event.user_id, event.chat_id, None)
        await self._guard(event.chat_id, work)

    async def hashtag(self, event: TextEvent, tag: Optional[str]) -> None:
        async def work():
            if not tag:
                raise ValidationError("Usage: /tag CampusLife")
            found = self.lifecycle.search_hashtag(tag)
            if not found:
                await self._reply(event.chat_id, f"🔍 No confessions found for {tag}.", kb.browse_kb())
                return
            await self._reply(event.chat_id, f"🔍 Confessions tagged {tag}:", kb.latest_confessions_kb(found))
        await self._guard(event.chat_id, work)

    async def status(self, event: TextEvent) -> None:
        await self._reply(event.chat_id, f"✅ Bot is running\n📊 Confession counter: {self.lifecycle.counter}")

    # ------------------ Free text ------------------
    async def on_text(self, event: TextEvent) -> None:
        logger.debug("on_text from %s: %s", event.user_id, (event.text or "")[:50])

        async def confession(slot: Awaiting, text: str):
            await self.lifecycle.submit(event.user_id, text, event.username)
            await self._reply(
                event.chat_id,
                "✅ Confession Submitted!\n\n"
                "Your confession is under review by admin.\n\n"
                "📝 Status: Waiting for approval\n"
                "⏰ You'll get a notification when it's posted",
                kb.after_submit_kb(),
            )

        async def comment(slot: Awaiting, text: str):
            result = await self.messaging.add_comment(slot.target, event.user_id, text)
            await self._reply(
                event.chat_id,
                f"✅ Comment Added!\n\nYour comment has been added to Confession #{result.confession.confession_number}.\n\n"
                f"💬 Total comments: {result.total}",
                kb.comment_added_kb(slot.target),
            )

        async def private_message(slot: Awaiting, text: str):
            result = await self.messaging.send_private_message(event.user_id, slot.target, text)
            note = "💬 They will be able to reply to you anonymously." if result.delivered else \
                "⚠️ Saved, but it could not be delivered right now."
            await self._reply(
                event.chat_id,
                f"✅ Message Sent!\n\nYour anonymous message has been sent to {result.recipient.nickname}.\n\n{note}",
                kb.message_sent_kb(slot.target),
            )

        async def rejection_reason(slot: Awaiting, text: str):
            try:
                decision = await self.moderation.complete_rejection(event.user_id, slot.target, text)
            except AlreadyDecidedError as e:
                await self._reply(event.chat_id, e.message)
                return
            note = "" if decision.author_notified else "\n⚠️ The author could not be notified."
            await self._reply(event.chat_id, f"✅ Confession rejected with reason.{note}")

        async def admin_message(slot: Awaiting, text: str):
            try:
                await self.moderation.send_admin_message(event.user_id, slot.target, text)
            except DeliveryError:
                await self._reply(event.chat_id, "❌ Failed to send message. User may have blocked the bot.")
                return
            user = self.social.get_user(slot.target)
            name = user.nickname if user else slot.target
            await self._reply(event.chat_id, f"✅ Message sent to {name}")

        async def nickname(slot: Awaiting, text: str):
            value = self.social.set_nickname(event.user_id, text)
            await self._reply(event.chat_id, f"✅ Nickname updated!\n\nYour nickname is now: {value}", kb.back_to_profile_kb())

        async def bio(slot: Awaiting, text: str):
            value = self.social.set_bio(event.user_id, text)
            await self._reply(event.chat_id, f"✅ Bio updated!\n\nYour new bio: \"{value}\"", kb.back_to_profile_kb())

        async def idle(text: str):
            await self._reply(event.chat_id, WELCOME_TEXT, kb.main_menu_kb())

        handlers = {
            Mode.CONFESSION: confession,
            Mode.COMMENT: comment,
            Mode.PRIVATE_MESSAGE: private_message,
            Mode.REJECTION_REASON: rejection_reason,
            Mode.ADMIN_MESSAGE: admin_message,
            Mode.NICKNAME: nickname,
            Mode.BIO: bio,
        }

        async def work():
            self.social.ensure_user(event.user_id, event.username)
            await self.context.resolve(event.user_id, event.text or "", handlers, idle)

        await self._guard(event.chat_id, work)

    # ------------------ Buttons ------------------
    async def on_action(self, event: ActionEvent) -> None:
        action, param = event.parsed
        logger.debug("on_action from %s: %s", event.user_id, event.data)
        handler = getattr(self, f"_action_{action}", None)
        if handler is None or (param is None and action not in EXACT_ACTIONS):
            await self.transport.acknowledge(event.event_id, "Unknown action")
            return

        async def work():
            self.social.ensure_user(event.user_id, event.username)
            toast = await handler(event, param) if param is not None else await handler(event)
            await self.transport.acknowledge(event.event_id, toast)

        await self._guard(event.chat_id, work, event.event_id)

    async def _action_noop(self, event):
        return None

    async def _action_main_menu(self, event):
        await self._edit_or_send(event.chat_id, event.message_id, WELCOME_TEXT, kb.main_menu_kb())

    async def _action_show_rules(self, event):
        await self._edit_or_send(event.chat_id, event.message_id, RULES_TEXT, kb.back_to_menu_kb())

    async def _action_show_about(self, event):
        await self._edit_or_send(event.chat_id, event.message_id, ABOUT_TEXT, kb.back_to_menu_kb())

    async def _action_cmd_cancel(self, event):
        self.context.clear(event.user_id)
        await self._reply(event.chat_id, "✅ Cancelled.", kb.main_menu_kb())

    # ---- confessions ----
    async def _action_send_confession(self, event):
        # Early cooldown hint; submit() enforces it again.
        self.lifecycle.limiter.check(event.user_id)
        self.context.set_mode(event.user_id, Mode.CONFESSION)
        await self._reply(
            event.chat_id,
            f"✍️ Send Your Confession\n\nType your confession below (max {CONFESSION_MAX_LENGTH} characters):\n\n"
            "💡 Tip: Add hashtags like:\n#Relationship #CampusLife #MentalHealth\n#Friendship #Crush #AdviceNeeded",
        )

    async def _action_browse_confessions(self, event):
        await self._edit_or_send(
            event.chat_id, event.message_id,
            "📋 Browse Confessions\n\nView recent confessions from the community.\nSearch with /tag <hashtag>.",
            kb.browse_kb(),
        )

    async def _action_view_latest_confessions(self, event):
        latest = self.lifecycle.latest(10)
        if not latest:
            await self._reply(event.chat_id, "📭 No confessions published yet.", kb.back_to_menu_kb())
            return
        await self._reply(event.chat_id, "🔄 Latest Confessions:", kb.latest_confessions_kb(latest))

    async def _show_confession(self, chat_id, message_id, confession_id: str) -> Confession:
        confession = self.lifecycle.get_published(confession_id)
        text = (
            f"📖 Confession #{confession.confession_number}\n\n"
            f"{confession.text}\n\n"
            f"💬 Comments: {confession.comment_count}"
        )
        await self._edit_or_send(
            chat_id, message_id, text,
            kb.confession_hub_kb(confession.confession_id, confession.user_id, confession.comment_count),
        )
        return confession

    async def _action_confession(self, event, confession_id):
        await self._show_confession(event.chat_id, event.message_id, confession_id)

    async def _action_next_confession(self, event, confession_id):
        nxt = self.lifecycle.next_after(confession_id)
        if nxt is None:
            return "📭 No more confessions"
        await self._show_confession(event.chat_id, event.message_id, nxt.confession_id)

    # ---- comments ----
    async def _action_add_comment(self, event, confession_id):
        confession = self.lifecycle.get_published(confession_id)
        self.context.set_mode(event.user_id, Mode.COMMENT, confession_id)
        await self._reply(
            event.chat_id,
            f"💬 Add Comment to Confession #{confession.confession_number}\n\n"
            f"Confession: \"{confession.preview(100)}\"\n\n"
            "Please write your comment below:\n\n🔒 Your comment will be anonymous to other users.",
        )

    async def _action_browse_comments(self, event, param):
        confession_id, _, page_s = param.rpartition("_")
        try:
            page = int(page_s)
        except ValueError:
            raise ValidationError("Invalid data")
        user = self.social.get_user(event.user_id)
        per_page = user.settings.get("comments_per_page", DEFAULT_COMMENTS_PER_PAGE) if user else DEFAULT_COMMENTS_PER_PAGE
        result = self.messaging.comments_page(confession_id, page, per_page)
        number = result.confession.confession_number
        if not result.comments:
            await self._reply(
                event.chat_id,
                f"📋 Comments on Confession #{number}\n\nNo comments yet. Be the first to comment!",
                [[("💬 Add First Comment", f"add_comment_{confession_id}")],
                 [("🔙 Back to Confession", f"confession_{confession_id}")]],
            )
            return
        lines = [f"📋 Comments on Confession #{number}\n"]
        for c in result.comments:
            lines.append(f"💬 {c.text}\n👤 Anonymous\n")
        lines.append(f"Displaying page {result.page}/{result.total_pages}. Total {result.total} Comments")
        await self._reply(event.chat_id, "\n".join(lines), kb.comments_page_kb(confession_id, result.page, result.total_pages))

    # ---- private messages ----
    async def _action_private_message(self, event, target_id):
        target = self.messaging.check_recipient(event.user_id, target_id)
        self.context.set_mode(event.user_id, Mode.PRIVATE_MESSAGE, target.user_id)
        await self._reply(
            event.chat_id,
            f"💌 Send Private Message\n\nYou're messaging: {target.display_name}\n\n"
            f"✨ Aura: {target.aura}\n📝 Bio: {target.bio}\n\n"
            "Type your message below:\n\n🔒 Your identity will be hidden.",
        )

    async def _action_my_messages(self, event):
        messages = self.messaging.recent_messages(event.user_id, 10)
        if not messages:
            await self._edit_or_send(
                event.chat_id, event.message_id,
                "💌 Your Messages\n\nNo messages yet.\n\n💡 Start conversations by sending private messages to other users!",
                kb.back_to_profile_kb(),
            )
            return
        lines = ["💌 Your Recent Messages\n"]
        for m in messages[:5]:
            prefix = "➡️ You" if m.from_user_id == str(event.user_id) else "⬅️ Anonymous"
            preview = m.text[:50] + ("..." if len(m.text) > 50 else "")
            lines.append(f"{prefix}: {preview}\n")
        conversations = {tuple(sorted(m.participants)) for m in messages}
        lines.append(f"📨 Total conversations: {len(conversations)}")
        await self._edit_or_send(event.chat_id, event.message_id, "\n".join(lines), kb.back_to_profile_kb())

    # ---- profiles & follow graph ----
    async def _action_view_profile(self, event, target_id):
        target = self.social.require_user(target_id)
        viewer = self.social.get_user(event.user_id)
        is_following = viewer is not None and target.user_id in viewer.following
        await self._edit_or_send(
            event.chat_id, event.message_id, public_profile_text(target),
            kb.public_profile_kb(target.user_id, event.user_id, target.privacy.get("allow_chats", True), is_following),
        )

    async def _action_follow(self, event, target_id):
        result = await self.social.toggle_follow(event.user_id, target_id)
        await self._action_view_profile(event, target_id)
        return "✅ Following" if result.following else "❌ Unfollowed"

    async def _action_show_profile(self, event):
        user = self.social.require_user(event.user_id)
        await self._edit_or_send(event.chat_id, event.message_id, own_profile_text(user), kb.profile_main_kb())

    async def _action_edit_profile(self, event):
        user = self.social.require_user(event.user_id)
        text = (
            "⚙️ Profile Customization\n\n"
            f"🎭 Profile Emoji: {user.profile_emoji}\n"
            f"📛 Nickname: {user.nickname}\n"
            f"📝 Bio: {user.bio}"
        )
        await self._edit_or_send(event.chat_id, event.message_id, text, kb.profile_edit_kb())

    async def _action_change_nickname(self, event):
        user = self.social.require_user(event.user_id)
        self.context.set_mode(event.user_id, Mode.NICKNAME)
        await self._reply(
            event.chat_id,
            f"📛 Change Your Nickname\n\nCurrent nickname: {user.nickname}\n\nEnter your new nickname (2-20 characters):",
        )

    async def _action_set_bio(self, event):
        self.context.set_mode(event.user_id, Mode.BIO)
        await self._reply(event.chat_id, "📝 Set Your Bio\n\nTell others about yourself in a short bio (max 100 characters):")

    async def _action_change_emoji(self, event):
        await self._edit_or_send(event.chat_id, event.message_id, "🎭 Choose Profile Emoji", kb.emoji_picker_kb())

    async def _action_set_emoji(self, event, emoji):
        allowed = {e for e, _ in kb.PROFILE_EMOJIS} | {"None"}
        if emoji not in allowed:
            raise ValidationError("❌ Unknown emoji")
        self.social.set_emoji(event.user_id, emoji)
        text = "✅ Emoji removed from your profile!" if emoji == "None" else f"✅ Profile emoji set to: {emoji}"
        await self._edit_or_send(event.chat_id, event.message_id, text, kb.back_to_profile_kb())
        return "✅ Emoji updated!"

    async def _action_privacy_settings(self, event):
        user = self.social.require_user(event.user_id)
        lines = ["👁️ Privacy Settings\n\nControl what others can see on your profile:\n"]
        for flag, label in kb.PRIVACY_FLAGS.items():
            lines.append(f"{'✅' if user.privacy.get(flag) else '❌'} {label}")
        await self._edit_or_send(event.chat_id, event.message_id, "\n".join(lines), kb.privacy_kb())

    async def _action_privacy_toggle(self, event, flag):
        value = self.social.toggle_privacy(event.user_id, flag)
        await self._action_privacy_settings(event)
        return "✅ Enabled" if value else "❌ Disabled"

    async def _action_user_settings(self, event):
        user = self.social.require_user(event.user_id)
        text = (
            "🔧 User Settings\n\n"
            f"📄 Comments Per Page: {user.settings.get('comments_per_page')}\n"
            f"💬 Allow Chat Requests: {'✅ Yes' if user.privacy.get('allow_chats') else '❌ No'}\n"
            f"🔔 Notifications: {'✅ Enabled' if user.settings.get('notifications') else '❌ Disabled'}"
        )
        await self._edit_or_send(event.chat_id, event.message_id, text, kb.settings_kb())

    async def _action_set_comments_page(self, event):
        user = self.social.require_user(event.user_id)
        await self._edit_or_send(
            event.chat_id, event.message_id,
            f"📄 Set Comments Per Page\n\nCurrent setting: {user.settings.get('comments_per_page')} comments per page",
            kb.page_size_kb(COMMENTS_PAGE_SIZES),
        )

    async def _action_set_page(self, event, size_s):
        try:
            size = int(size_s)
        except ValueError:
            raise ValidationError("❌ Unsupported page size.")
        self.social.set_comments_per_page(event.user_id, size)
        await self._edit_or_send(event.chat_id, event.message_id, f"✅ Comments per page set to: {size}", kb.back_to_settings_kb())
        return "✅ Page size updated!"

    async def _action_toggle_notifications(self, event):
        value = self.social.toggle_notifications(event.user_id)
        await self._action_user_settings(event)
        return "🔔 Notifications on" if value else "🔕 Notifications off"

    async def _action_user_stats(self, event):
        s = self.social.stats(event.user_id)
        text = (
            "📊 Your Statistics\n\n"
            f"💡 Confessions Posted: {s.confessions}\n"
            f"💬 Comments Made: {s.comments}\n"
            f"💌 Messages Sent: {s.messages_sent}\n"
            f"👥 Followers: {s.followers}\n"
            f"📈 Following: {s.following}\n"
            f"✨ Aura Points: {s.aura}\n\n"
            f"🎯 Engagement Rate: {s.engagement_rate}%\n"
            f"⭐ Rank: {s.rank}"
        )
        await self._edit_or_send(event.chat_id, event.message_id, text, kb.back_to_profile_kb())

    # ---- moderation ----
    async def _action_approve(self, event, confession_id):
        try:
            decision = await self.moderation.approve(event.user_id, confession_id)
        except AlreadyDecidedError as e:
            await self._edit_or_send(event.chat_id, event.message_id, e.message)
            return "ℹ️ Already decided"
        number = decision.confession.confession_number
        lines = [f"✅ Confession #{number} Approved!\n"]
        lines.append("Posted to the channel." if decision.published else "⚠️ Could not post to the channel.")
        lines.append("User has been notified." if decision.author_notified else "⚠️ User could not be notified.")
        await self._edit_or_send(event.chat_id, event.message_id, "\n".join(lines))
        return "✅ Approved!"

    async def _action_reject(self, event, confession_id):
        try:
            self.moderation.begin_rejection(event.user_id, confession_id)
        except AlreadyDecidedError as e:
            await self._edit_or_send(event.chat_id, event.message_id, e.message)
            return "ℹ️ Already decided"
        await self._reply(event.chat_id, f"❌ Rejecting Confession {confession_id}\n\nPlease provide rejection reason:")

    async def _action_message_user(self, event, user_id):
        user = self.moderation.begin_admin_message(event.user_id, user_id)
        await self._reply(
            event.chat_id,
            f"📩 Messaging User\n\nUser: {user.nickname} (@{user.username or 'no_username'})\n"
            f"ID: {user.user_id}\n\nType your message below:",
        )

    async def _action_view_user(self, event, user_id):
        user, confessions = self.moderation.view_user(event.user_id, user_id)
        text = (
            "👤 User Profile (Admin View)\n\n"
            f"🆔 Telegram ID: {user.user_id}\n"
            f"📛 Username: @{user.username or 'No username'}\n"
            f"🎭 Nickname: {user.nickname}\n"
            f"✨ Aura: {user.aura}\n"
            f"👥 Followers: {len(user.followers)} | Following: {len(user.following)}\n\n"
            f"📊 Confessions: {confessions}\n"
            f"📅 Joined: {user.joined_at[:10]}\n"
            f"🕒 Last Seen: {user.last_seen[:19]}\n\n"
            f"📝 Bio: {user.bio}"
        )
        await self._reply(event.chat_id, text, kb.admin_user_kb(user.user_id))

    async def _show_dashboard(self, user_id, chat_id, message_id):
        d = self.moderation.dashboard(user_id)
        text = (
            "🔧 Admin Dashboard\n\n"
            f"👥 Total Users: {d.users}\n"
            f"📝 Total Confessions: {d.confessions}\n"
            f"💬 Total Comments: {d.comments}\n"
            f"⏳ Pending Confessions: {d.pending}"
        )
        await self._edit_or_send(chat_id, message_id, text, kb.admin_dashboard_kb())

    async def _action_admin_dashboard(self, event):
        await self._show_dashboard(event.user_id, event.chat_id, event.message_id)

    async def _action_admin_pending(self, event):
        pending = self.moderation.pending(event.user_id, 10)
        if not pending:
            await self._edit_or_send(event.chat_id, event.message_id, "✅ No pending confessions!", kb.admin_pending_kb())
            return
        lines = [f"📝 Pending Confessions ({len(pending)})\n"]
        for i, c in enumerate(pending, start=1):
            lines.append(f"{i}. {c.confession_id}\n👤 User: {c.user_id}\n📅 Submitted: {c.created_at[:10]}\n")
        lines.append("💡 Use the approval buttons in individual confession notifications.")
        await self._edit_or_send(event.chat_id, event.message_id, "\n".join(lines), kb.admin_pending_kb())


# ------------------ Text renderers ------------------
def own_profile_text(user: User) -> str:
    return (
        f"👤 {user.display_name}\n\n"
        f"✨ Aura: {user.aura}\n"
        f"👥 Followers: {len(user.followers)} | Following: {len(user.following)}\n\n"
        f"📝 Bio: {user.bio}"
    )


def public_profile_text(user: User) -> str:
    privacy = user.privacy
    lines = [f"👤 {user.display_name}\n", f"✨ Aura: {user.aura}"]
    if privacy.get("show_followers"):
        lines.append(f"👥 Followers: {len(user.followers)}")
    if privacy.get("show_following"):
        lines.append(f"📈 Following: {len(user.following)}")
    lines.append(f"\n📝 Bio: {user.bio}\n")
    lines.append(f"🕒 Member since: {user.joined_at[:10]}")

    hidden = []
    if not privacy.get("show_confessions"):
        hidden.append("• Confessions hidden")
    if not privacy.get("show_comments"):
        hidden.append("• Comments hidden")
    if not privacy.get("show_following"):
        hidden.append("• Following hidden")
    if not privacy.get("show_followers"):
        hidden.append("• Followers hidden")
    if hidden:
        lines.append("\n🔒 Privacy:\n" + "\n".join(hidden))
    return "\n".join(lines)
