"""
aiogram handlers: convert Telegram updates into flow events.

Handler order matters: commands first, then callback queries, and the
catch-all text handler last so it never swallows a command.
"""

import logging

from aiogram import Dispatcher, types
from aiogram.filters import Command
from aiogram.types import BotCommand

from flows import ActionEvent, BotFlows, TextEvent

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    BotCommand(command="start", description="🤫 Main menu"),
    BotCommand(command="profile", description="👤 View your profile"),
    BotCommand(command="rules", description="📌 View the bot's rules"),
    BotCommand(command="tag", description="🔍 Search confessions by hashtag"),
    BotCommand(command="cancel", description="❌ Cancel what you're doing"),
]


def text_event(message: types.Message) -> TextEvent:
    user = message.from_user
    return TextEvent(
        user_id=str(user.id),
        chat_id=str(message.chat.id),
        text=message.text or "",
        username=user.username or user.full_name,
    )


def command_args(message: types.Message):
    parts = (message.text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else None


def register_handlers(dp: Dispatcher, flows: BotFlows) -> None:
    # ------------------ Commands ------------------
    @dp.message(Command("start"))
    async def cmd_start(message: types.Message):
        logger.debug("cmd_start triggered: %s", message.text)
        await flows.start(text_event(message), command_args(message))

    @dp.message(Command("cancel"))
    async def cmd_cancel(message: types.Message):
        logger.debug("cmd_cancel triggered")
        await flows.cancel(text_event(message))

    @dp.message(Command("profile"))
    async def cmd_profile(message: types.Message):
        logger.debug("cmd_profile triggered")
        await flows.profile(text_event(message))

    @dp.message(Command("rules"))
    async def cmd_rules(message: types.Message):
        logger.debug("cmd_rules triggered")
        await flows.rules(text_event(message))

    @dp.message(Command("tag"))
    async def cmd_tag(message: types.Message):
        logger.debug("cmd_tag triggered: %s", message.text)
        await flows.hashtag(text_event(message), command_args(message))

    @dp.message(Command("admin"))
    async def cmd_admin(message: types.Message):
        logger.debug("cmd_admin triggered")
        await flows.admin(text_event(message))

    @dp.message(Command("status"))
    async def cmd_status(message: types.Message):
        await flows.status(text_event(message))

    # ------------------ Buttons ------------------
    @dp.callback_query()
    async def on_callback(call: types.CallbackQuery):
        logger.debug("callback triggered: %s", call.data)
        chat_id = call.message.chat.id if call.message else call.from_user.id
        message_id = call.message.message_id if call.message else None
        await flows.on_action(ActionEvent(
            user_id=str(call.from_user.id),
            chat_id=str(chat_id),
            data=call.data or "",
            event_id=call.id,
            message_id=message_id,
            username=call.from_user.username or call.from_user.full_name,
        ))

    # ------------------ Free text (must be last) ------------------
    @dp.message()
    async def handle_message(message: types.Message):
        if message.text is None:
            await message.answer("📝 Only text messages are supported.")
            return
        logger.debug("handle_message triggered from %s", message.from_user.id)
        await flows.on_text(text_event(message))
