"""Async Telegram Bot API client — session, request dispatcher and long-poll engine.

Usage::

    from tgbot import TelegramBot, MessageToSend
    from tgbot.exceptions import ServerConnectionError, RequestError
"""

from tgbot.client import BotOptions, TelegramBot
from tgbot.exceptions import (
    APIException,
    ArgumentValidationError,
    DecodeError,
    PollingConflictError,
    RequestError,
    ServerConnectionError,
    TransportError,
)
from tgbot.models import MessageToSend, Update

__all__ = [
    "TelegramBot",
    "BotOptions",
    "MessageToSend",
    "Update",
    "APIException",
    "ArgumentValidationError",
    "DecodeError",
    "PollingConflictError",
    "RequestError",
    "ServerConnectionError",
    "TransportError",
]
