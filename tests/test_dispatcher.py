"""Tests for RequestDispatcher: request building, timeouts and decoding."""

import json
import sys
import os

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import FakeTransport
from tgbot.dispatcher import RequestDispatcher
from tgbot.exceptions import DecodeError, RequestError, TransportError
from tgbot.models import (
    GetMeResponse,
    JsonParams,
    MessageToSend,
    PollParams,
    UpdateResponse,
    WebhookParams,
    WebhookResponse,
)

API_URL = "https://api.example.com/bot123:ABC"


# ── Request building ─────────────────────────────────────────────────────────


class TestBuildRequest:

    def test_get_without_params(self) -> None:
        req = RequestDispatcher(API_URL).build_request("getMe")
        assert req.method == "GET"
        assert req.url == f"{API_URL}/getMe"
        assert req.form is None
        assert req.body is None

    def test_trailing_slash_stripped(self) -> None:
        req = RequestDispatcher(API_URL + "/").build_request("getMe")
        assert req.url == f"{API_URL}/getMe"

    def test_form_post(self) -> None:
        req = RequestDispatcher(API_URL).build_request("setWebhook", WebhookParams("https://hook"))
        assert req.method == "POST"
        assert req.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert req.form == {"url": "https://hook"}

    def test_form_omits_absent_offset(self) -> None:
        req = RequestDispatcher(API_URL).build_request("getUpdates", PollParams(limit=30, timeout=10))
        assert "offset" not in req.form

    def test_json_post(self) -> None:
        req = RequestDispatcher(API_URL).build_request("sendMessage", JsonParams(MessageToSend(chat_id=1, text="t")))
        assert req.method == "POST"
        assert req.headers["Content-Type"] == "application/json"
        assert json.loads(req.body) == {"chat_id": 1, "text": "t"}
        assert req.form is None


class TestNetworkTimeout:

    def test_poll_timeout_adds_limit_and_margin(self) -> None:
        dispatcher = RequestDispatcher(API_URL, net_connection_timeout=5)
        req = dispatcher.build_request("getUpdates", PollParams(limit=30, timeout=10))
        assert req.timeout == 37

    def test_poll_timeout_without_connection_timeout(self) -> None:
        req = RequestDispatcher(API_URL).build_request("getUpdates", PollParams(limit=30, timeout=10))
        assert req.timeout == 32

    def test_one_shot_uses_connection_timeout(self) -> None:
        req = RequestDispatcher(API_URL, net_connection_timeout=7).build_request("getMe")
        assert req.timeout == 7

    def test_one_shot_default(self) -> None:
        req = RequestDispatcher(API_URL).build_request("getMe")
        assert req.timeout == RequestDispatcher._DEFAULT_TIMEOUT

    def test_timeout_is_read_at_dispatch_time(self) -> None:
        dispatcher = RequestDispatcher(API_URL)
        dispatcher.net_connection_timeout = 20
        req = dispatcher.build_request("getUpdates", PollParams(limit=1, timeout=10))
        assert req.timeout == 23


# ── Dispatch ─────────────────────────────────────────────────────────────────


class TestDispatch:

    @pytest.mark.asyncio
    async def test_decodes_success(self) -> None:
        transport = FakeTransport().script("getMe", {"ok": True, "result": {"id": 5, "username": "b"}})
        resp = await RequestDispatcher(API_URL, transport).dispatch("getMe", None, GetMeResponse)
        assert resp.ok is True
        assert resp.result.id == 5

    @pytest.mark.asyncio
    async def test_not_ok_is_returned_not_raised(self) -> None:
        transport = FakeTransport().script("setWebhook", {"ok": False, "error_code": 400, "description": "bad"})
        resp = await RequestDispatcher(API_URL, transport).dispatch("setWebhook", WebhookParams(""), WebhookResponse)
        assert resp.ok is False
        assert resp.description == "bad"

    @pytest.mark.asyncio
    async def test_non_json_body_raises_decode_error(self) -> None:
        transport = FakeTransport().script("getUpdates", "<html>502</html>")
        dispatcher = RequestDispatcher(API_URL, transport)
        with pytest.raises(DecodeError) as exc_info:
            await dispatcher.dispatch("getUpdates", PollParams(limit=1, timeout=0), UpdateResponse)
        assert exc_info.value.response_body == "<html>502</html>"

    @pytest.mark.asyncio
    async def test_wrong_shape_raises_decode_error(self) -> None:
        transport = FakeTransport().script("getUpdates", {"ok": True, "result": [{"no_id": 1}]})
        with pytest.raises(DecodeError):
            await RequestDispatcher(API_URL, transport).dispatch(
                "getUpdates", PollParams(limit=1, timeout=0), UpdateResponse
            )

    @pytest.mark.asyncio
    async def test_transport_failure_raises_transport_error(self) -> None:
        transport = FakeTransport().script("getMe", requests.ConnectionError("offline"))
        with pytest.raises(TransportError) as exc_info:
            await RequestDispatcher(API_URL, transport).dispatch("getMe", None, GetMeResponse)
        assert isinstance(exc_info.value, RequestError)
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    @pytest.mark.asyncio
    async def test_token_scrubbed_from_transport_error(self) -> None:
        transport = FakeTransport().script(
            "getMe", requests.ConnectionError("Max retries exceeded with url: /bot123:ABC/getMe")
        )
        dispatcher = RequestDispatcher(API_URL, transport, secret="123:ABC")
        with pytest.raises(TransportError) as exc_info:
            await dispatcher.dispatch("getMe", None, GetMeResponse)
        assert "123:ABC" not in str(exc_info.value)
        assert "<token>" in str(exc_info.value)
