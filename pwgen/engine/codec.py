"""
Message Codec - fixed-size messages over asyncio streams

Maps the pydantic message models to their wire layouts and moves them over
a stream connection. Framing is implicit: the receiver reads exactly the
message size of the type it expects next.
"""
import asyncio
from typing import Dict, Type, TypeVar

import pydantic
import structlog

from pwgen.engine.protocol_parser import ProtocolParser
from pwgen.exceptions import ConnectionClosed, ParseError, ShortWrite
from pwgen.models import MenuMessage, PasswordRequest, PasswordResponse
from pwgen.protocol import menu_model, request_model, response_model

logger = structlog.get_logger()

MessageT = TypeVar("MessageT", MenuMessage, PasswordRequest, PasswordResponse)

_PARSERS: Dict[type, ProtocolParser] = {
    MenuMessage: ProtocolParser(menu_model),
    PasswordRequest: ProtocolParser(request_model),
    PasswordResponse: ProtocolParser(response_model),
}


def _parser_for(message_cls: type) -> ProtocolParser:
    try:
        return _PARSERS[message_cls]
    except KeyError:
        raise TypeError(f"{message_cls.__name__} is not a wire message")


def message_size(message_cls: type) -> int:
    """Encoded size in bytes of every message of this type."""
    return _parser_for(message_cls).size


def encode_message(message) -> bytes:
    """
    Encode a message to its fixed-size wire form.

    Raises:
        SerializationError: If a text field does not fit its capacity
    """
    parser = _parser_for(type(message))
    return parser.serialize(message.model_dump())


def decode_message(message_cls: Type[MessageT], data: bytes) -> MessageT:
    """
    Decode exactly one message of the given type.

    Raises:
        ParseError: If data has the wrong size or violates the message model
    """
    parser = _parser_for(message_cls)
    fields = parser.parse(data)
    try:
        return message_cls(**fields)
    except pydantic.ValidationError as e:
        raise ParseError(
            f"Invalid {message_cls.__name__}: {e.error_count()} field error(s)",
            details={"errors": e.errors(include_url=False)},
        )


async def read_message(reader: asyncio.StreamReader, message_cls: Type[MessageT]) -> MessageT:
    """
    Read exactly one message from the stream.

    Partial reads are retried until the full size arrives.

    Raises:
        ConnectionClosed: If the peer closes or resets before the full message
        ParseError: If the received bytes do not decode
    """
    size = message_size(message_cls)
    try:
        data = await reader.readexactly(size)
    except asyncio.IncompleteReadError as e:
        raise ConnectionClosed(
            f"Connection closed while reading {message_cls.__name__}",
            details={"expected": size, "received": len(e.partial)},
        )
    except (ConnectionResetError, BrokenPipeError) as e:
        raise ConnectionClosed(
            f"Connection reset while reading {message_cls.__name__}",
            details={"expected": size, "error": str(e)},
        )

    return decode_message(message_cls, data)


async def write_message(writer: asyncio.StreamWriter, message) -> None:
    """
    Write one complete message and wait for the buffer to drain.

    Raises:
        ShortWrite: If the connection cannot take the whole message
        SerializationError: If the message does not fit its layout
    """
    data = encode_message(message)
    name = type(message).__name__

    if writer.is_closing():
        raise ShortWrite(
            f"Connection closing, {name} not sent",
            details={"expected": len(data), "sent": 0},
        )

    try:
        writer.write(data)
        await writer.drain()
    except (ConnectionError, OSError) as e:
        raise ShortWrite(
            f"Failed to send {name}",
            details={"expected": len(data), "error": str(e)},
        )

    logger.debug("message_sent", message_type=name, size=len(data))
