"""Request dispatcher — builds, sends and decodes a single Bot API call.

The transport mode is chosen by the type of the params object (see
:mod:`tgbot.models`).  The dispatcher never looks at the ``ok`` flag of a
reply; it only guarantees that what it returns was decoded into the expected
shape.  Anything else surfaces as a :class:`~tgbot.exceptions.RequestError`.
"""

from __future__ import annotations

from typing import Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from core.logger import BotLogger
from tgbot.exceptions import DecodeError, TransportError
from tgbot.models import FormParams, JsonParams, PollParams, RequestParams, WebhookParams
from tgbot.transport import HttpRequest, HttpResponse, RequestsTransport, Transport

logger = BotLogger.get_logger()

R = TypeVar("R", bound=BaseModel)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

# Margin on top of the long-poll hold so a held-open connection is not cut.
POLL_TIMEOUT_MARGIN = 2


class RequestDispatcher:
    """Sends Bot API calls to ``{api_url}/{action}``.

    Args:
        api_url: Base URL including the ``/bot<token>`` segment.
        transport: Transport to send through; a :class:`RequestsTransport`
            when omitted.
        net_connection_timeout: Client-side timeout in seconds. ``0`` means
            unset, in which case one-shot calls use ``_DEFAULT_TIMEOUT``.
        secret: Value masked out of error messages (the bot token).
    """

    _DEFAULT_TIMEOUT: int = 10

    def __init__(
        self,
        api_url: str,
        transport: Optional[Transport] = None,
        net_connection_timeout: int = 0,
        secret: Optional[str] = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._transport = transport or RequestsTransport()
        self.net_connection_timeout = net_connection_timeout
        self._secret = secret

    # ------------------------------------------------------------------
    #  Request building
    # ------------------------------------------------------------------

    def network_timeout(self, params: Optional[RequestParams]) -> float:
        """Client-side timeout for a call carrying *params*.

        Poll calls get ``net_connection_timeout + limit + 2`` so the client
        outlasts the server holding the connection open.
        """
        if isinstance(params, PollParams):
            return self.net_connection_timeout + params.limit + POLL_TIMEOUT_MARGIN
        return self.net_connection_timeout or self._DEFAULT_TIMEOUT

    def build_request(self, action: str, params: Optional[RequestParams] = None) -> HttpRequest:
        url = f"{self._api_url}/{action}"
        timeout = self.network_timeout(params)

        if isinstance(params, (PollParams, WebhookParams)):
            return self._form_request(url, params, timeout)
        if isinstance(params, JsonParams):
            return HttpRequest(
                method="POST",
                url=url,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                body=params.to_json(),
                timeout=timeout,
            )
        return HttpRequest(method="GET", url=url, timeout=timeout)

    @staticmethod
    def _form_request(url: str, params: FormParams, timeout: float) -> HttpRequest:
        return HttpRequest(
            method="POST",
            url=url,
            headers={"Content-Type": FORM_CONTENT_TYPE},
            form=params.form_fields(),
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    #  Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, action: str, params: Optional[RequestParams], result_type: Type[R]) -> R:
        """Send *action* and decode the reply into *result_type*.

        Raises:
            TransportError: The request could not complete.
            DecodeError: The body is not JSON or does not fit *result_type*.
        """
        request = self.build_request(action, params)
        logger.debug(
            "Dispatching request",
            extra={"api_endpoint": action, "method": request.method, "timeout": request.timeout},
        )
        try:
            response = await self._transport.send(request)
        except (requests.RequestException, OSError) as exc:
            reason = self._scrub(str(exc))
            logger.error("Request failed", extra={"api_endpoint": action, "error": reason})
            raise TransportError(action, reason) from exc

        return self._decode(action, response, result_type)

    def _scrub(self, message: str) -> str:
        if self._secret:
            return message.replace(self._secret, "<token>")
        return message

    @staticmethod
    def _decode(action: str, response: HttpResponse, result_type: Type[R]) -> R:
        try:
            return result_type.model_validate_json(response.text)
        except ValidationError as exc:
            logger.error(
                "Response decode error",
                extra={"api_endpoint": action, "status_code": response.status_code, "error": str(exc)},
            )
            raise DecodeError(action, response.status_code, response.text, str(exc)) from exc
