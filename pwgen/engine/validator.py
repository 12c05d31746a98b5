"""
Request validation

Pure checks applied to every request before a password is generated.
The boolean checks never raise; check_request() turns a failed check into
a ValidationError carrying the message shown to the client.
"""
import string

from pwgen.exceptions import ValidationError
from pwgen.models import PasswordClass, PasswordRequest
from pwgen.protocol import (
    ALLOWED_SELECTORS,
    INVALID_LENGTH_MESSAGE,
    INVALID_TYPE_MESSAGE,
    QUIT_SELECTOR,
)


def keep_generating(selector: str, quit_selector: str = QUIT_SELECTOR) -> bool:
    """False when the selector asks to end the session (case-insensitive)."""
    return selector.lower() != quit_selector.lower()


def is_valid_selector(allowed: str, selector: str) -> bool:
    """True if selector is exactly one of the allowed class letters."""
    return len(selector) == 1 and selector in allowed


def is_valid_length(text: str, min_length: int, max_length: int) -> bool:
    """
    True if text is a non-empty run of decimal digits whose value lies in
    [min_length, max_length].
    """
    if not text:
        return False
    if any(ch not in string.digits for ch in text):
        return False
    return min_length <= int(text) <= max_length


def check_request(
    request: PasswordRequest,
    min_length: int,
    max_length: int,
    allowed: str = ALLOWED_SELECTORS,
) -> PasswordClass:
    """
    Validate a non-quit request, type first and then length.

    The selector is lower-cased before it is checked.

    Returns:
        The requested password class

    Raises:
        ValidationError: With the user-facing message of the first failed check
    """
    selector = request.selector.lower()
    if not is_valid_selector(allowed, selector):
        raise ValidationError(INVALID_TYPE_MESSAGE, details={"selector": request.selector})
    if not is_valid_length(request.length_text, min_length, max_length):
        raise ValidationError(
            INVALID_LENGTH_MESSAGE,
            details={"length_text": request.length_text[:16]},
        )
    return PasswordClass.from_selector(selector)
