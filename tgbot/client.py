"""TelegramBot -- session state and outbound Bot API operations.

A :class:`TelegramBot` owns the token, the derived API URL and the bot's own
identity.  Every operation that needs an identity awaits :meth:`init` first;
``init`` calls ``getMe`` once per session and caches the result.

Usage::

    bot = TelegramBot(token)
    await bot.send_message(MessageToSend(chat_id=42, text="hi"))

    stop = asyncio.Event()
    task = bot.start_long_poll(handle_update, stop)
    ...
    stop.set()
    await task
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Optional

import config
from core.logger import BotLogger
from tgbot.dispatcher import RequestDispatcher
from tgbot.exceptions import ArgumentValidationError, PollingConflictError, ServerConnectionError
from tgbot.models import (
    GetMeResponse,
    JsonParams,
    MessageResponse,
    MessageToSend,
    WebhookParams,
    WebhookResponse,
)
from tgbot.polling import LongPoller, UpdateCallback
from tgbot.transport import Transport

logger = BotLogger.get_logger()

DEFAULT_HOST = "api.telegram.org"
DEFAULT_PORT = 443


@dataclasses.dataclass(frozen=True, slots=True)
class BotOptions:
    """Where the Bot API lives. Port 443 means https, anything else http."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def api_url(self, token: str) -> str:
        scheme = "https" if self.port == 443 else "http"
        port_part = "" if self.port in (443, 80) else f":{self.port}"
        return f"{scheme}://{self.host}{port_part}/bot{token}"


class TelegramBot:
    """A Bot API session.

    Attributes:
        updates_limit: Max updates per ``getUpdates`` call.
        updates_timeout: Seconds the server may hold a poll open.
        updates_offset: Next update id to ask for; ``None`` starts from the
            oldest update the server still buffers.
        on_update_received: Callback used when polling starts without one.
    """

    def __init__(
        self,
        token: str,
        options: Optional[BotOptions] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        options = options or BotOptions()
        self._token = token
        self.api_url = options.api_url(token)
        self.dispatcher = RequestDispatcher(self.api_url, transport, secret=token)

        self.updates_limit: int = 30
        self.updates_timeout: int = 10
        self.updates_offset: Optional[int] = None
        self.on_update_received: Optional[UpdateCallback] = None

        self.inited = False
        self.bot_id: Optional[int] = None
        self.bot_username: Optional[str] = None

        self._init_lock = asyncio.Lock()
        self._polling = False

    @classmethod
    def from_env(cls, transport: Optional[Transport] = None) -> "TelegramBot":
        """Build a session from the values resolved in :mod:`config`.

        Raises:
            EnvironmentError: If ``BOT_TOKEN`` is not set.
        """
        if not config.BOT_TOKEN:
            raise EnvironmentError("BOT_TOKEN environment variable is not set or is empty.")
        bot = cls(
            config.BOT_TOKEN,
            BotOptions(host=config.TELEGRAM_API_HOST, port=config.TELEGRAM_API_PORT),
            transport,
        )
        bot.updates_limit = config.UPDATES_LIMIT
        bot.updates_timeout = config.UPDATES_TIMEOUT
        bot.net_connection_timeout = config.NET_CONNECTION_TIMEOUT
        return bot

    @property
    def token(self) -> str:
        return self._token

    @property
    def net_connection_timeout(self) -> int:
        """Client-side network timeout in seconds (``0`` = unset)."""
        return self.dispatcher.net_connection_timeout

    @net_connection_timeout.setter
    def net_connection_timeout(self, value: int) -> None:
        self.dispatcher.net_connection_timeout = value

    @property
    def polling(self) -> bool:
        return self._polling

    # ------------------------------------------------------------------
    #  Identity
    # ------------------------------------------------------------------

    async def init(self) -> bool:
        """Verify the token with ``getMe`` and record the bot identity.

        Only the first call touches the network; concurrent first callers
        wait for that call instead of issuing their own.

        Raises:
            ServerConnectionError: ``getMe`` replied with ``ok: false``.
            RequestError: ``getMe`` could not complete.
        """
        if self.inited:
            return True

        async with self._init_lock:
            if self.inited:
                return True

            response = await self.dispatcher.dispatch("getMe", None, GetMeResponse)
            if not response.ok or response.result is None:
                logger.error(
                    "getMe returned ok=false",
                    extra={"api_endpoint": "getMe", "error_code": response.error_code, "description": response.description},
                )
                raise ServerConnectionError(response.description)

            self.bot_id = response.result.id
            self.bot_username = response.result.username
            self.inited = True

        logger.info("Bot identity established", extra={"bot_id": self.bot_id, "bot_username": self.bot_username})
        return True

    # ------------------------------------------------------------------
    #  Outbound operations
    # ------------------------------------------------------------------

    async def send_message(self, message: MessageToSend) -> MessageResponse:
        """Send *message* as JSON. An ``ok: false`` reply is returned, not raised."""
        await self.init()
        response = await self.dispatcher.dispatch("sendMessage", JsonParams(message), MessageResponse)
        if response.ok:
            logger.info("Message sent", extra={"chat_id": message.chat_id, "api_endpoint": "sendMessage"})
        else:
            logger.warning(
                "sendMessage Telegram error",
                extra={"chat_id": message.chat_id, "api_endpoint": "sendMessage", "description": response.description},
            )
        return response

    async def set_webhook(self, url: str) -> bool:
        """Point the bot's webhook at *url*, which must be an https URL.

        Raises:
            ArgumentValidationError: *url* is empty or not https. No request
                is made in that case.
        """
        if not url or not url.lower().startswith("https:"):
            raise ArgumentValidationError("The url should start with https")
        await self.init()
        return await self._set_webhook(url)

    async def remove_webhook(self) -> bool:
        """Remove the webhook by setting an empty url."""
        await self.init()
        return await self._set_webhook("")

    async def _set_webhook(self, url: str) -> bool:
        response = await self.dispatcher.dispatch("setWebhook", WebhookParams(url), WebhookResponse)
        logger.info("setWebhook replied", extra={"api_endpoint": "setWebhook", "ok": response.ok, "removed": url == ""})
        return response.ok

    # ------------------------------------------------------------------
    #  Long polling
    # ------------------------------------------------------------------

    async def run_long_poll(
        self,
        on_update: Optional[UpdateCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Poll for updates until *cancel_event* is set or the task is cancelled.

        *on_update* defaults to :attr:`on_update_received`.

        Raises:
            PollingConflictError: A loop is already running on this session.
            ServerConnectionError: The session could not be initialised.
        """
        self._claim_polling()
        try:
            await self._poll(on_update, cancel_event)
        finally:
            self._release_polling()

    def start_long_poll(
        self,
        on_update: Optional[UpdateCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> "asyncio.Task[None]":
        """Schedule :meth:`run_long_poll` on the running loop and return its task.

        The one-loop-per-session check happens here, before the task exists.
        The claim is released when the task finishes, even if it is cancelled
        before its first step.
        """
        self._claim_polling()
        coro = self._poll(on_update, cancel_event)
        try:
            task = asyncio.create_task(coro)
        except BaseException:
            coro.close()
            self._release_polling()
            raise
        task.add_done_callback(lambda _task: self._release_polling())
        return task

    def _claim_polling(self) -> None:
        if self._polling:
            raise PollingConflictError("A long-poll loop is already running for this bot")
        self._polling = True

    def _release_polling(self) -> None:
        self._polling = False

    async def _poll(self, on_update: Optional[UpdateCallback], cancel_event: Optional[asyncio.Event]) -> None:
        await self.init()
        poller = LongPoller(
            self,
            on_update if on_update is not None else self.on_update_received,
            cancel_event or asyncio.Event(),
        )
        await poller.run()
