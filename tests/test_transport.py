"""
Transport over a mocked aiogram Bot, and the services running on top of it
when Telegram misbehaves.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramNetworkError
from aiogram.methods import AnswerCallbackQuery, GetMe, SendMessage
from aiogram.types import InlineKeyboardMarkup

from conftest import ADMIN_IDS, ALICE, BOB, CHANNEL_ID
from errors import DeliveryError
from lifecycle import ConfessionLifecycle
from messaging import MessagingService
from models import COMMENTS, CONFESSIONS, Confession, ConfessionStatus
from ratelimit import CooldownLimiter
from social import SocialGraph
from transport import Transport, build_markup


def mock_bot(username="confessbot"):
    bot = MagicMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username=username))
    bot.send_message = AsyncMock(return_value=MagicMock(message_id=77))
    bot.edit_message_text = AsyncMock()
    bot.edit_message_reply_markup = AsyncMock()
    bot.answer_callback_query = AsyncMock()
    return bot


def get_me_down(bot):
    bot.get_me.side_effect = TelegramNetworkError(method=GetMe(), message="timeout")


class TestBuildMarkup:
    def test_empty(self):
        assert build_markup(None) is None
        assert build_markup([]) is None

    def test_url_and_callback_buttons(self):
        markup = build_markup([
            [("💬 Comments", "https://t.me/confessbot?start=conf_x"), ("Open", "tg://resolve?domain=x")],
            [("✅ Approve", "approve_confess_1_1")],
        ])
        assert isinstance(markup, InlineKeyboardMarkup)
        url_button, tg_button = markup.inline_keyboard[0]
        assert url_button.url == "https://t.me/confessbot?start=conf_x"
        assert url_button.callback_data is None
        assert tg_button.url == "tg://resolve?domain=x"
        callback = markup.inline_keyboard[1][0]
        assert callback.callback_data == "approve_confess_1_1"
        assert callback.url is None


class TestTransport:
    @pytest.mark.asyncio
    async def test_send_returns_message_id(self):
        bot = mock_bot()
        message_id = await Transport(bot).send_message("100", "hello", [[("Menu", "main_menu")]])
        assert message_id == 77
        args, kwargs = bot.send_message.await_args
        assert args == ("100", "hello")
        assert kwargs["reply_markup"].inline_keyboard[0][0].callback_data == "main_menu"

    @pytest.mark.asyncio
    async def test_send_failure_becomes_delivery_error(self):
        bot = mock_bot()
        bot.send_message.side_effect = TelegramBadRequest(method=SendMessage(chat_id=1, text="x"), message="chat not found")
        with pytest.raises(DeliveryError) as exc:
            await Transport(bot).send_message("100", "hello")
        assert exc.value.chat_id == "100"

    @pytest.mark.asyncio
    async def test_edit_without_text_only_touches_markup(self):
        bot = mock_bot()
        await Transport(bot).edit_message("-100", 5, actions=[[("💬 (3)", "https://t.me/x")]])
        bot.edit_message_reply_markup.assert_awaited_once()
        bot.edit_message_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_with_text(self):
        bot = mock_bot()
        await Transport(bot).edit_message("100", 5, "new text")
        assert bot.edit_message_text.await_args.kwargs["text"] == "new text"

    @pytest.mark.asyncio
    async def test_edit_failure_becomes_delivery_error(self):
        bot = mock_bot()
        bot.edit_message_text.side_effect = TelegramBadRequest(method=GetMe(), message="message is not modified")
        with pytest.raises(DeliveryError):
            await Transport(bot).edit_message("100", 5, "same text")

    @pytest.mark.asyncio
    async def test_acknowledge_swallows_stale_callback(self):
        bot = mock_bot()
        bot.answer_callback_query.side_effect = TelegramBadRequest(
            method=AnswerCallbackQuery(callback_query_id="cb"), message="query is too old"
        )
        await Transport(bot).acknowledge("cb", "✅ Approved!")
        bot.answer_callback_query.assert_awaited_once_with("cb", text="✅ Approved!")

    @pytest.mark.asyncio
    async def test_acknowledge_without_event(self):
        bot = mock_bot()
        await Transport(bot).acknowledge(None, "ignored")
        bot.answer_callback_query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deep_link_caches_username(self):
        bot = mock_bot()
        transport = Transport(bot)
        assert await transport.deep_link("conf_a") == "https://t.me/confessbot?start=conf_a"
        assert await transport.deep_link("conf_b") == "https://t.me/confessbot?start=conf_b"
        bot.get_me.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_deep_link_failure_becomes_delivery_error(self):
        bot = mock_bot()
        get_me_down(bot)
        with pytest.raises(DeliveryError):
            await Transport(bot).deep_link("conf_a")


class TestBotLookupFailure:
    @pytest.mark.asyncio
    async def test_approval_still_notifies_author(self, store, clock):
        bot = mock_bot()
        get_me_down(bot)
        lifecycle = ConfessionLifecycle(store, Transport(bot), channel_id=CHANNEL_ID,
                                        limiter=CooldownLimiter(clock=clock))
        confession = await lifecycle.submit(ALICE, "the bot cannot find itself")

        decision = await lifecycle.approve(confession.confession_id, ADMIN_IDS[0])

        assert decision.confession.status is ConfessionStatus.APPROVED
        assert decision.published is False
        assert decision.author_notified is True
        chats = [c.args[0] for c in bot.send_message.await_args_list]
        assert chats == [ALICE]
        assert store.get(CONFESSIONS, confession.confession_id)["channel_message_id"] is None

    @pytest.mark.asyncio
    async def test_comment_kept_when_button_refresh_fails(self, store, clock):
        bot = mock_bot()
        get_me_down(bot)
        transport = Transport(bot)
        lifecycle = ConfessionLifecycle(store, transport, channel_id=CHANNEL_ID,
                                        limiter=CooldownLimiter(clock=clock))
        social = SocialGraph(store)
        social.ensure_user(ALICE)
        social.ensure_user(BOB)
        messaging = MessagingService(store, transport, lifecycle, social)
        confession = Confession("confess_100_1", ALICE, "already on the channel",
                                status=ConfessionStatus.APPROVED, confession_number=1, channel_message_id=55)
        store.set(CONFESSIONS, confession.confession_id, confession.to_doc())

        result = await messaging.add_comment(confession.confession_id, BOB, "still counts")

        assert result.total == 1
        assert store.count(COMMENTS) == 1
        assert result.author_notified is True
        bot.edit_message_reply_markup.assert_not_awaited()
