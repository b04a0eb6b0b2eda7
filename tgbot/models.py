"""Pydantic models for the Bot API calls the SDK makes, plus request params.

Only the fields the SDK touches are declared; everything else the server
sends is kept verbatim (``extra="allow"``) so callers can read it.

The ``*Params`` dataclasses describe *how* a call is sent:

* ``None``            -> ``GET`` with no body
* :class:`PollParams` / :class:`WebhookParams` -> form-urlencoded ``POST``
* :class:`JsonParams` -> ``POST`` with a JSON body
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field, RootModel

T = TypeVar("T")


# ── Response envelope ────────────────────────────────────────────────────────


class APIResponse(BaseModel, Generic[T]):
    """Envelope shared by every Bot API reply."""

    ok: bool = False
    result: Optional[T] = None
    description: Optional[str] = None
    error_code: Optional[int] = None

    model_config = {"populate_by_name": True, "extra": "allow"}


# ── Objects ──────────────────────────────────────────────────────────────────


class User(BaseModel):
    """A Telegram user or bot, as returned by ``getMe``."""

    id: int
    is_bot: bool = True
    first_name: Optional[str] = None
    username: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "allow"}


class Chat(BaseModel):
    """This object represents a chat."""

    id: int
    type: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "allow"}


class Message(BaseModel):
    """A message returned by ``sendMessage``."""

    message_id: int
    date: Optional[int] = None
    chat: Optional[Chat] = None
    from_field: Optional[User] = Field(None, alias="from")
    text: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "allow"}


class Update(BaseModel):
    """An incoming update.

    Only ``update_id`` is interpreted; the rest of the object is forwarded
    untouched and is available through :attr:`payload`.
    """

    update_id: int

    model_config = {"populate_by_name": True, "extra": "allow"}

    @property
    def payload(self) -> Dict[str, Any]:
        """Every field of the update other than ``update_id``."""
        return dict(self.model_extra or {})


class MessageToSend(BaseModel):
    """Body of a ``sendMessage`` call. ``None`` fields are not sent."""

    chat_id: Union[int, str]
    text: str
    parse_mode: Optional[str] = None
    disable_web_page_preview: Optional[bool] = None
    disable_notification: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[Dict[str, Any]] = None

    model_config = {"populate_by_name": True, "extra": "allow"}


# ── Typed responses ──────────────────────────────────────────────────────────


class GetMeResponse(APIResponse[User]):
    """Reply to ``getMe``."""


class MessageResponse(APIResponse[Message]):
    """Reply to ``sendMessage``."""


class UpdateResponse(APIResponse[List[Update]]):
    """Reply to ``getUpdates``."""


class WebhookResponse(APIResponse[bool]):
    """Reply to ``setWebhook``."""


# ── Request parameters ───────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class PollParams:
    """Form fields of a ``getUpdates`` call."""

    limit: int
    timeout: int
    offset: Optional[int] = None

    def form_fields(self) -> Dict[str, str]:
        fields = {"limit": str(self.limit), "timeout": str(self.timeout)}
        if self.offset is not None:
            fields["offset"] = str(self.offset)
        return fields


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookParams:
    """Form fields of a ``setWebhook`` call. An empty url removes the hook."""

    url: str

    def form_fields(self) -> Dict[str, str]:
        return {"url": self.url}


@dataclasses.dataclass(frozen=True, slots=True)
class JsonParams:
    """A JSON body. Dict payloads have their ``None`` values dropped too."""

    payload: Union[BaseModel, Dict[str, Any]]

    def to_json(self) -> bytes:
        if isinstance(self.payload, BaseModel):
            return self.payload.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        cleaned = {key: value for key, value in self.payload.items() if value is not None}
        return RootModel[Dict[str, Any]](cleaned).model_dump_json().encode("utf-8")


FormParams = Union[PollParams, WebhookParams]
RequestParams = Union[PollParams, WebhookParams, JsonParams]

