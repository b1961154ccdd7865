"""
Shared fixtures: in-memory store, a recording transport, a controllable clock
and the fully wired services.
"""

import os

# main.py builds the app at import time and needs a syntactically valid token.
os.environ.setdefault("BOT_TOKEN", "123456:TEST-token-for-unit-tests")

from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from context import ConversationContext
from errors import DeliveryError
from flows import ActionEvent, BotFlows, TextEvent
from lifecycle import ConfessionLifecycle
from messaging import MessagingService
from moderation import ModerationFanout
from ratelimit import CooldownLimiter
from social import SocialGraph
from store import MemoryStore

CHANNEL_ID = "-100500"
ADMIN_IDS = ["900", "901"]
ALICE = "100"
BOB = "200"


@dataclass
class Sent:
    chat_id: str
    text: str
    actions: Any
    message_id: int


class FakeTransport:
    """Records everything the bot would have sent to Telegram."""

    def __init__(self):
        self.sent = []
        self.edits = []
        self.acks = []
        self.unreachable = set()
        self._next_id = 1000

    async def deep_link(self, payload: str) -> str:
        return f"https://t.me/testbot?start={payload}"

    async def send_message(self, chat_id, text, actions=None):
        if str(chat_id) in self.unreachable:
            raise DeliveryError(chat_id)
        self._next_id += 1
        self.sent.append(Sent(str(chat_id), text, actions, self._next_id))
        return self._next_id

    async def edit_message(self, chat_id, message_id, text=None, actions=None):
        if str(chat_id) in self.unreachable:
            raise DeliveryError(chat_id)
        self.edits.append((str(chat_id), message_id, text, actions))

    async def acknowledge(self, event_id, text=None):
        self.acks.append((event_id, text))

    def messages_to(self, chat_id):
        return [m for m in self.sent if m.chat_id == str(chat_id)]

    def last_to(self, chat_id) -> Optional[Sent]:
        msgs = self.messages_to(chat_id)
        return msgs[-1] if msgs else None

    def all_callbacks(self, chat_id):
        data = []
        for m in self.messages_to(chat_id):
            for row in m.actions or []:
                data.extend(target for _, target in row)
        return data


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


def build_services(store, transport, clock, admin_ids=ADMIN_IDS, channel_id=CHANNEL_ID):
    context = ConversationContext()
    lifecycle = ConfessionLifecycle(store, transport, channel_id=channel_id, limiter=CooldownLimiter(clock=clock))
    social = SocialGraph(store)
    messaging = MessagingService(store, transport, lifecycle, social)
    moderation = ModerationFanout(lifecycle, messaging, social, context, transport, admin_ids)
    flows = BotFlows(lifecycle, moderation, social, messaging, context, transport)
    return SimpleNamespace(
        store=store,
        transport=transport,
        clock=clock,
        context=context,
        lifecycle=lifecycle,
        social=social,
        messaging=messaging,
        moderation=moderation,
        flows=flows,
    )


@pytest.fixture
def services(store, transport, clock):
    svc = build_services(store, transport, clock)
    for uid, name in ((ALICE, "alice"), (BOB, "bob"), (ADMIN_IDS[0], "mod_a"), (ADMIN_IDS[1], "mod_b")):
        svc.social.ensure_user(uid, name)
    return svc


@pytest.fixture
def published(services):
    """Factory: submit and approve a confession, returning the approved Confession."""
    async def _publish(author=ALICE, text="Something I never told anyone #Secret"):
        services.lifecycle.limiter.reset(author)
        confession = await services.lifecycle.submit(author, text)
        decision = await services.lifecycle.approve(confession.confession_id, ADMIN_IDS[0])
        return decision.confession
    return _publish


def text(user_id, body, username=None) -> TextEvent:
    return TextEvent(user_id=str(user_id), chat_id=str(user_id), text=body, username=username)


def action(user_id, data, message_id=None) -> ActionEvent:
    return ActionEvent(user_id=str(user_id), chat_id=str(user_id), data=data, event_id=f"cb-{data}", message_id=message_id)
