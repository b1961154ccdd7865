"""Error taxonomy shared by the core services and the bot handlers."""

import math


class ConfessionBotError(Exception):
    """Base error. `message` is safe to show to the user who triggered it."""

    message = "❌ Something went wrong. Please try again."

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ConfessionBotError):
    message = "❌ Invalid input."


class NotFoundError(ConfessionBotError):
    message = "❌ Not found. Please try again."


class RecipientNotFoundError(NotFoundError):
    message = "❌ User not found."


class AlreadyDecidedError(ConfessionBotError):
    message = "ℹ️ This confession was already decided by another moderator."

    def __init__(self, confession_id: str, status: str):
        self.confession_id = confession_id
        self.status = status
        super().__init__(f"ℹ️ Confession already {status}. No action taken.")


class CooldownError(ConfessionBotError):
    def __init__(self, remaining_seconds: float):
        self.remaining_seconds = max(1, math.ceil(remaining_seconds))
        super().__init__(f"⏳ Please wait {self.remaining_seconds} seconds before sending another confession.")


class NotPermittedError(ConfessionBotError):
    message = "❌ Access denied. Admin only."


class DeliveryError(ConfessionBotError):
    message = "❌ Failed to deliver the message. The user may have blocked the bot."

    def __init__(self, chat_id, message=None):
        self.chat_id = chat_id
        super().__init__(message)


class SelfFollowError(ConfessionBotError):
    message = "❌ You cannot follow yourself."


class SelfMessageError(ConfessionBotError):
    message = "❌ You cannot message yourself."


class ChatsDisabledError(ConfessionBotError):
    message = "❌ This user does not accept messages."


class RejectionPendingError(ConfessionBotError):
    def __init__(self, pending_confession_id: str):
        self.pending_confession_id = pending_confession_id
        super().__init__(
            f"⚠️ You are still rejecting {pending_confession_id}. "
            "Send the reason for that one first, or /cancel."
        )
