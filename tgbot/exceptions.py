"""Exception hierarchy for the tgbot Telegram SDK."""

from typing import Optional


class APIException(Exception):
    """Base exception for every error raised by the SDK."""


class ServerConnectionError(APIException):
    """Raised when the bot identity cannot be established with ``getMe``.

    Fatal to every operation that depends on an initialised session.
    """

    def __init__(self, description: Optional[str] = None) -> None:
        """Initialise with the optional ``description`` from the API reply."""
        self.description = description
        message = "Cannot establish identity with server"
        if description:
            message = f"{message}: {description}"
        super().__init__(message)


class ArgumentValidationError(APIException, ValueError):
    """A caller-supplied argument violates a precondition.

    Raised before any network call is attempted.
    """


class PollingConflictError(APIException):
    """Raised when a second long-poll loop is started on the same session."""


class RequestError(APIException):
    """A single dispatched request could not complete.

    Attributes:
        action: Bot API method name, e.g. ``"getUpdates"``.
    """

    def __init__(self, action: str, message: str) -> None:
        self.action = action
        super().__init__(f"{action}: {message}")


class TransportError(RequestError):
    """Network-level failure; ``__cause__`` holds the transport exception."""


class DecodeError(RequestError):
    """The response body is not JSON or does not match the expected shape.

    Attributes:
        status_code: HTTP status code of the undecodable response.
        response_body: Raw response text (truncated to 500 characters).
    """

    _MAX_BODY: int = 500

    def __init__(self, action: str, status_code: int, response_body: str, reason: str) -> None:
        """Initialise with the HTTP status, raw body and parser message."""
        self.status_code = status_code
        self.response_body = response_body[: self._MAX_BODY]
        super().__init__(action, f"undecodable response (status={status_code}): {reason}")
