"""
Per-user conversation slot.

Each user has at most one "awaiting input" mode. Setting a mode replaces the
previous one, so two modes can never be active together.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    CONFESSION = "awaiting_confession"
    COMMENT = "awaiting_comment"
    PRIVATE_MESSAGE = "awaiting_private_message"
    REJECTION_REASON = "awaiting_rejection_reason"
    ADMIN_MESSAGE = "awaiting_admin_message"
    NICKNAME = "awaiting_nickname_change"
    BIO = "awaiting_bio_change"


# Dispatch order for free text.
MODE_PRIORITY = (
    Mode.CONFESSION,
    Mode.COMMENT,
    Mode.PRIVATE_MESSAGE,
    Mode.REJECTION_REASON,
    Mode.ADMIN_MESSAGE,
    Mode.NICKNAME,
    Mode.BIO,
)

# Modes that must carry a target id (confession id or user id).
TARGETED_MODES = {Mode.COMMENT, Mode.PRIVATE_MESSAGE, Mode.REJECTION_REASON, Mode.ADMIN_MESSAGE}

TextHandler = Callable[["Awaiting", str], Awaitable[None]]


@dataclass(frozen=True)
class Awaiting:
    user_id: str
    mode: Mode
    target: Optional[str] = None


class ConversationContext:
    def __init__(self):
        self._slots: Dict[str, Awaiting] = {}

    def set_mode(self, user_id, mode: Mode, target: Optional[str] = None) -> Awaiting:
        if mode in TARGETED_MODES and not target:
            raise ValueError(f"{mode.value} needs a target id")
        slot = Awaiting(str(user_id), mode, str(target) if target is not None else None)
        previous = self._slots.get(slot.user_id)
        if previous is not None and previous != slot:
            logger.debug("User %s: replacing %s with %s", slot.user_id, previous.mode.value, mode.value)
        self._slots[slot.user_id] = slot
        return slot

    def get(self, user_id) -> Optional[Awaiting]:
        return self._slots.get(str(user_id))

    def clear(self, user_id) -> Optional[Awaiting]:
        return self._slots.pop(str(user_id), None)

    def take(self, user_id) -> Optional[Awaiting]:
        """Return the current slot and clear it."""
        return self.clear(user_id)

    async def resolve(self, user_id, text: str, handlers: Dict[Mode, TextHandler],
                      idle: Callable[[str], Awaitable[None]]) -> Optional[Mode]:
        """
        Route one free-text message by the user's current mode.

        The slot is cleared before the handler runs so a failing handler can
        never leave the user stuck in a dead mode. Returns the mode handled,
        or None when the idle handler (main menu) ran.
        """
        slot = self.take(user_id)
        if slot is None:
            await idle(text)
            return None

        for mode in MODE_PRIORITY:
            if slot.mode is mode:
                await handlers[mode](slot, text)
                return mode
        raise ValueError(f"No handler for mode {slot.mode}")
