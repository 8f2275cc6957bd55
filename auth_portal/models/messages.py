"""
Message Models
Status messages carried across redirects and the action results that carry them
"""

from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict


class MessageKind(str, Enum):
    """Query parameter names recognised by the redirect-message protocol"""
    SUCCESS = "success"
    ERROR = "error"
    MESSAGE = "message"


# Decode priority, highest first
MESSAGE_PRIORITY = (MessageKind.SUCCESS, MessageKind.ERROR, MessageKind.MESSAGE)


class StatusMessage(BaseModel):
    """One-shot success/error/info text shown after a redirect"""

    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    text: str

    @classmethod
    def success(cls, text: str) -> "StatusMessage":
        return cls(kind=MessageKind.SUCCESS, text=text)

    @classmethod
    def error(cls, text: str) -> "StatusMessage":
        return cls(kind=MessageKind.ERROR, text=text)

    @classmethod
    def info(cls, text: str) -> "StatusMessage":
        return cls(kind=MessageKind.MESSAGE, text=text)

    @property
    def is_success(self) -> bool:
        return self.kind == MessageKind.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.kind == MessageKind.ERROR


class AuthActionResult(BaseModel):
    """
    Outcome of an auth action handler

    Either a redirect to `path` carrying `message`, or a terminal redirect
    with no message. `location` is the full redirect target.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    location: str
    message: Optional[StatusMessage] = None


class FormMessageResponse(BaseModel):
    """Decoded message returned by a receiving page"""
    page: str
    message: Optional[StatusMessage] = None
