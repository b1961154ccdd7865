#!/usr/bin/env python3
"""
Anonymous Confession Bot: FastAPI webhook + aiogram 3 + Supabase
- Start: gunicorn main:app --worker-class uvicorn.workers.UvicornWorker --workers 1 --bind 0.0.0.0:$PORT
- Aiogram 3.x dispatcher (dp.feed_update in the webhook)
- Supabase via supabase-py; without credentials an in-memory store is used
- Environment vars: see config.py

Single worker only: conversation slots, the submission cooldown and the
confession counter live in process memory.
"""

# ------------------ Standard library imports ------------------
import logging

# ------------------ Third-party imports ------------------
from aiogram import Bot, Dispatcher, types
from aiogram.exceptions import TelegramAPIError
from fastapi import FastAPI, Request
from pydantic import ValidationError as PydanticValidationError

# ------------------ Local imports ------------------
from config import Settings, load_settings
from context import ConversationContext
from flows import BotFlows
from handlers import BOT_COMMANDS, register_handlers
from lifecycle import ConfessionLifecycle
from messaging import MessagingService
from moderation import ModerationFanout
from ratelimit import CooldownLimiter
from social import SocialGraph
from store import EntityStore, create_store
from transport import Transport

logger = logging.getLogger("confession_bot")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_flows(settings: Settings, store: EntityStore, transport) -> BotFlows:
    context = ConversationContext()
    lifecycle = ConfessionLifecycle(store, transport, channel_id=settings.channel_id, limiter=CooldownLimiter())
    social = SocialGraph(store)
    messaging = MessagingService(store, transport, lifecycle, social)
    moderation = ModerationFanout(lifecycle, messaging, social, context, transport, settings.admin_ids)
    return BotFlows(lifecycle, moderation, social, messaging, context, transport)


def create_app(settings: Settings = None, store: EntityStore = None, bot: Bot = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    # ------------------ Clients ------------------
    bot = bot or Bot(settings.bot_token)
    dp = Dispatcher()
    store = store or create_store(settings)
    flows = build_flows(settings, store, Transport(bot))
    register_handlers(dp, flows)

    app = FastAPI()
    app.state.bot = bot
    app.state.dp = dp
    app.state.flows = flows

    # ------------------ Startup hooks ------------------
    @app.on_event("startup")
    async def on_startup():
        flows.lifecycle.recover_counter()
        try:
            await bot.set_my_commands(BOT_COMMANDS)
        except TelegramAPIError as e:
            logger.warning("Could not set bot commands: %s", e)
        logger.info("Startup: counter at %s, app is ready.", flows.lifecycle.counter)

    @app.on_event("shutdown")
    async def on_shutdown():
        await bot.session.close()

    # ------------------ Webhook route ------------------
    @app.post("/")
    async def webhook(request: Request):
        try:
            data = await request.json()
        except ValueError:
            logger.warning("Webhook: body is not JSON")
            return {"ok": False, "error": "invalid json"}
        logger.debug("Webhook received: %s", data)

        try:
            update = types.Update.model_validate(data, context={"bot": bot})
        except PydanticValidationError:
            logger.warning("Webhook: invalid update payload")
            return {"ok": False, "error": "invalid update"}

        try:
            await dp.feed_update(bot, update)
        except Exception:
            # Never let one update kill the server; Telegram backs off on ok=false.
            logger.exception("Error while feeding update %s", update.update_id)
            return {"ok": False, "error": "handler error"}
        return {"ok": True}

    # ------------------ Health endpoints ------------------
    @app.get("/")
    def root():
        return {"status": "running", "confession_counter": flows.lifecycle.counter}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()

# ------------------ Main entrypoint for local runs ------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=load_settings().port)
