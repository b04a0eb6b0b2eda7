"""Long-poll engine.

Repeatedly calls ``getUpdates``, advances the session's offset past every
update it hands out, and invokes the update callback.  The loop only stops
when its cancel event is set or its task is cancelled; failed polls, ``ok:
false`` replies and raising callbacks are logged and polling continues.

Delivery is at-most-once: the offset moves past an update *before* the
callback sees it, so an update whose callback fails is not fetched again.
A callback may be a coroutine function; it is awaited before the next update
is handed out.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from core.logger import BotLogger
from tgbot.exceptions import RequestError
from tgbot.models import PollParams, Update, UpdateResponse

if TYPE_CHECKING:
    from tgbot.client import TelegramBot

logger = BotLogger.get_logger()

UpdateCallback = Callable[[Update], Union[None, Awaitable[Any]]]

GET_UPDATES = "getUpdates"


class LongPoller:
    """Runs the ``getUpdates`` loop for one :class:`~tgbot.client.TelegramBot`.

    The offset lives on the bot (``bot.updates_offset``) so callers can read
    and persist it; only this loop writes it while polling.
    """

    def __init__(
        self,
        bot: "TelegramBot",
        on_update: Optional[UpdateCallback],
        cancel_event: asyncio.Event,
    ) -> None:
        self._bot = bot
        self._on_update = on_update
        self._cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def run(self) -> None:
        logger.info("Long polling started", extra={"api_endpoint": GET_UPDATES, "offset": self._bot.updates_offset})
        while not self.cancelled:
            await self.poll_once()
            # Yield so other tasks (and a cancel) get a turn between polls.
            await asyncio.sleep(0)
        logger.info("Long polling stopped", extra={"api_endpoint": GET_UPDATES, "offset": self._bot.updates_offset})

    async def poll_once(self) -> int:
        """Run one iteration and return how many updates were handed out."""
        params = PollParams(
            limit=self._bot.updates_limit,
            timeout=self._bot.updates_timeout,
            offset=self._bot.updates_offset,
        )
        try:
            response = await self._bot.dispatcher.dispatch(GET_UPDATES, params, UpdateResponse)
        except RequestError as exc:
            logger.warning("getUpdates failed, polling again", extra={"api_endpoint": GET_UPDATES, "error": str(exc)})
            return 0

        if self.cancelled:
            logger.debug("Discarding poll result received after cancellation", extra={"api_endpoint": GET_UPDATES})
            return 0

        if not response.ok:
            logger.warning(
                "getUpdates returned ok=false",
                extra={"api_endpoint": GET_UPDATES, "error_code": response.error_code, "description": response.description},
            )
            return 0

        updates = response.result or []
        if updates:
            logger.debug("Received updates", extra={"count": len(updates), "offset": params.offset})
        delivered = 0
        for update in updates:
            if not self._advance(update.update_id):
                logger.debug(
                    "Skipping update already behind the offset",
                    extra={"update_id": update.update_id, "offset": self._bot.updates_offset},
                )
                continue
            await self._deliver(update)
            delivered += 1
        return delivered

    def _advance(self, update_id: int) -> bool:
        """Move the offset past *update_id*; False if it is already past it."""
        new_offset = update_id + 1
        current = self._bot.updates_offset
        if current is not None and new_offset <= current:
            return False
        self._bot.updates_offset = new_offset
        return True

    async def _deliver(self, update: Update) -> None:
        if self._on_update is None:
            return
        try:
            result = self._on_update(update)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Update callback raised", extra={"update_id": update.update_id})
