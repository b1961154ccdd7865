"""
Thin wrapper around the aiogram Bot.

Core services only see send_message / edit_message / acknowledge and plain
action rows: [[(label, callback_data_or_url), ...], ...]. Telegram failures
surface as DeliveryError.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from errors import DeliveryError

logger = logging.getLogger(__name__)

Action = Tuple[str, str]
Actions = Sequence[Sequence[Action]]


def build_markup(actions: Optional[Actions]) -> Optional[InlineKeyboardMarkup]:
    if not actions:
        return None
    rows: List[List[InlineKeyboardButton]] = []
    for row in actions:
        buttons = []
        for label, target in row:
            if target.startswith("https://") or target.startswith("tg://"):
                buttons.append(InlineKeyboardButton(text=label, url=target))
            else:
                buttons.append(InlineKeyboardButton(text=label, callback_data=target))
        rows.append(buttons)
    return InlineKeyboardMarkup(inline_keyboard=rows)


class Transport:
    def __init__(self, bot: Bot):
        self.bot = bot
        self._username: Optional[str] = None

    async def bot_username(self) -> str:
        if self._username is None:
            try:
                me = await self.bot.get_me()
            except TelegramAPIError as e:
                logger.warning("get_me failed: %s", e)
                raise DeliveryError(None) from e
            self._username = me.username
        return self._username

    async def deep_link(self, payload: str) -> str:
        return f"https://t.me/{await self.bot_username()}?start={payload}"

    async def send_message(self, chat_id, text: str, actions: Optional[Actions] = None) -> int:
        try:
            sent = await self.bot.send_message(chat_id, text, reply_markup=build_markup(actions))
        except TelegramAPIError as e:
            logger.warning("send_message to %s failed: %s", chat_id, e)
            raise DeliveryError(chat_id) from e
        return sent.message_id

    async def edit_message(self, chat_id, message_id: int, text: Optional[str] = None,
                           actions: Optional[Actions] = None) -> None:
        try:
            if text is None:
                await self.bot.edit_message_reply_markup(
                    chat_id=chat_id, message_id=message_id, reply_markup=build_markup(actions)
                )
            else:
                await self.bot.edit_message_text(
                    text=text, chat_id=chat_id, message_id=message_id, reply_markup=build_markup(actions)
                )
        except TelegramAPIError as e:
            logger.warning("edit_message %s/%s failed: %s", chat_id, message_id, e)
            raise DeliveryError(chat_id) from e

    async def acknowledge(self, event_id: Optional[str], text: Optional[str] = None) -> None:
        if not event_id:
            return
        try:
            await self.bot.answer_callback_query(event_id, text=text)
        except TelegramAPIError as e:
            # Stale callbacks cannot be answered; nothing for the user to see.
            logger.debug("answer_callback_query %s failed: %s", event_id, e)
