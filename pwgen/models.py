"""
Core data models
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pwgen.protocol import (
    BUFFER_SIZE,
    ERROR_MESSAGE_SIZE,
    PASSWORD_FIELD_SIZE,
)


class PasswordClass(str, Enum):
    """Password character class, keyed by its selector letter"""

    NUMERIC = "n"
    ALPHA = "a"
    MIXED = "m"
    SECURE = "s"

    @classmethod
    def from_selector(cls, selector: str) -> "PasswordClass":
        """Case-insensitive lookup; ValueError for an unknown letter."""
        return cls(selector.lower())


class SessionState(str, Enum):
    """Per-connection session state"""

    GREETING = "greeting"
    AWAITING_REQUEST = "awaiting_request"
    RESPONDING = "responding"
    CLOSED = "closed"


class ResponseKind(str, Enum):
    """Which of the three response shapes a PasswordResponse holds"""

    SUCCESS = "success"
    ERROR = "error"
    CLOSE = "close"


class MenuMessage(BaseModel):
    """Menu text sent once per connection"""

    model_config = ConfigDict(frozen=True)

    menu_text: str = Field(default="", max_length=BUFFER_SIZE - 1)


class PasswordRequest(BaseModel):
    """Password generation request sent by the client"""

    model_config = ConfigDict(frozen=True)

    selector: str = Field(default="", max_length=1)
    length_text: str = Field(default="", max_length=BUFFER_SIZE - 1)


class PasswordResponse(BaseModel):
    """
    Server answer to a single request.

    Exactly one shape is valid at a time:
    - success: password set, no error
    - error: error message set, no password
    - close: continue_ false, both fields empty
    Build instances through success(), failure() or closing().
    """

    model_config = ConfigDict(frozen=True)

    continue_: bool = True
    password: str = Field(default="", max_length=PASSWORD_FIELD_SIZE - 1)
    is_error: bool = False
    error_message: str = Field(default="", max_length=ERROR_MESSAGE_SIZE - 1)

    @model_validator(mode="after")
    def _check_shape(self) -> "PasswordResponse":
        if not self.continue_:
            if self.password or self.error_message or self.is_error:
                raise ValueError("closing response must not carry a password or an error")
        elif self.is_error:
            if not self.error_message or self.password:
                raise ValueError("error response needs an error message and no password")
        elif not self.password or self.error_message:
            raise ValueError("success response needs a password and no error message")
        return self

    @classmethod
    def success(cls, password: str) -> "PasswordResponse":
        return cls(continue_=True, password=password, is_error=False, error_message="")

    @classmethod
    def failure(cls, message: str) -> "PasswordResponse":
        return cls(continue_=True, password="", is_error=True, error_message=message)

    @classmethod
    def closing(cls) -> "PasswordResponse":
        return cls(continue_=False, password="", is_error=False, error_message="")

    @property
    def kind(self) -> ResponseKind:
        if not self.continue_:
            return ResponseKind.CLOSE
        if self.is_error:
            return ResponseKind.ERROR
        return ResponseKind.SUCCESS
