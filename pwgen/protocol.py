"""
Password service wire protocol

Declares the fixed-layout messages exchanged on every connection and the
session state machine that drives them:
- MenuMessage: server -> client, once, right after accept
- PasswordRequest: client -> server, one per round
- PasswordResponse: server -> client, one per request

There is no length prefix or delimiter. Each side reads exactly the
declared size of the message it expects next.
"""

BUFFER_SIZE = 1024
MAX_PASSWORD_LENGTH = 32
PASSWORD_FIELD_SIZE = MAX_PASSWORD_LENGTH + 1
ERROR_MESSAGE_SIZE = 50

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_BACKLOG = 5

QUIT_SELECTOR = "q"
ALLOWED_SELECTORS = "nams"

INVALID_TYPE_MESSAGE = "The type inserted is not valid.\n"
INVALID_LENGTH_MESSAGE = "The length for the password is not valid.\n"


def build_menu_text(min_length: int, max_length: int) -> str:
    """Render the menu shown to every client after connecting."""
    return (
        f"Insert the type of password and its length (between {min_length} and {max_length}):\n"
        "  n: numeric password (only digits)\n"
        "  a: alphabetic password (only lowercase letters)\n"
        "  m: mixed password (lowercase letters and digits)\n"
        "  s: secure password (uppercase letters, lowercase letters, digits, and symbols)\n"
        "  q: to close the connection\n"
        "? "
    )


# Text fields are NUL padded and keep one byte for the terminator
menu_model = {
    "name": "MenuMessage",
    "blocks": [
        {
            "name": "menu_text",
            "type": "string",
            "size": BUFFER_SIZE,
            "encoding": "utf-8",
        },
    ],
}

request_model = {
    "name": "PasswordRequest",
    "blocks": [
        {
            "name": "selector",
            "type": "char",
        },
        {
            "name": "length_text",
            "type": "string",
            "size": BUFFER_SIZE,
            "encoding": "utf-8",
        },
    ],
}

response_model = {
    "name": "PasswordResponse",
    "blocks": [
        {
            "name": "continue_",
            "type": "bool",
        },
        {
            "name": "password",
            "type": "string",
            "size": PASSWORD_FIELD_SIZE,
            "encoding": "ascii",
        },
        {
            "name": "is_error",
            "type": "bool",
        },
        {
            "name": "error_message",
            "type": "string",
            "size": ERROR_MESSAGE_SIZE,
            "encoding": "utf-8",
        },
    ],
}

# Per-connection state machine
state_model = {
    "initial_state": "greeting",
    "states": ["greeting", "awaiting_request", "responding", "closed"],
    "transitions": [
        {
            "from": "greeting",
            "to": "awaiting_request",
            "trigger": "menu_sent",
            "message_type": "MenuMessage",
        },
        {
            "from": "awaiting_request",
            "to": "responding",
            "trigger": "request_received",
            "message_type": "PasswordRequest",
        },
        {
            "from": "responding",
            "to": "awaiting_request",
            "trigger": "response_sent",
            "message_type": "PasswordResponse",
        },
        {
            "from": "responding",
            "to": "closed",
            "trigger": "quit_acknowledged",
            "message_type": "PasswordResponse",
        },
        # Transport failures end the session from any live state
        {"from": "greeting", "to": "closed", "trigger": "transport_failed"},
        {"from": "awaiting_request", "to": "closed", "trigger": "transport_failed"},
        {"from": "responding", "to": "closed", "trigger": "transport_failed"},
    ],
}
