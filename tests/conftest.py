"""Shared fixtures: an in-memory transport and a bot wired to it."""

import json
import sys
import os
from collections import defaultdict, deque
from typing import Callable, Optional

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tgbot.client import TelegramBot
from tgbot.transport import HttpRequest, HttpResponse

GET_ME_OK = {"ok": True, "result": {"id": 777, "is_bot": True, "first_name": "Poller", "username": "poller_bot"}}


class FakeTransport:
    """Replays scripted replies per Bot API action and records every request.

    A scripted reply is a dict (sent as JSON), a str (sent verbatim) or an
    exception instance (raised).  When an action's script runs dry,
    ``getUpdates`` answers with an empty batch and anything else with
    ``{"ok": true}``.
    """

    def __init__(self) -> None:
        self.requests: list[HttpRequest] = []
        self._scripts: dict[str, deque] = defaultdict(deque)
        self.after_send: Optional[Callable[[HttpRequest], None]] = None

    def script(self, action: str, *replies: object) -> "FakeTransport":
        self._scripts[action].extend(replies)
        return self

    def calls(self, action: str) -> list[HttpRequest]:
        return [r for r in self.requests if r.url.rsplit("/", 1)[-1] == action]

    async def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        action = request.url.rsplit("/", 1)[-1]
        queue = self._scripts[action]
        if queue:
            reply = queue.popleft()
        elif action == "getUpdates":
            reply = {"ok": True, "result": []}
        else:
            reply = {"ok": True}
        if self.after_send is not None:
            self.after_send(request)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return HttpResponse(status_code=200, text=reply)
        return HttpResponse(status_code=200, text=json.dumps(reply))


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport().script("getMe", GET_ME_OK)


@pytest.fixture()
def bot(transport: FakeTransport) -> TelegramBot:
    return TelegramBot("123:ABC", transport=transport)
