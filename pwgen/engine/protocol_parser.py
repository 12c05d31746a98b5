"""
Protocol Parser - Bidirectional conversion between bytes and structured fields

Parses fixed-layout protocol messages into field dictionaries based on a
data_model, and serializes field dictionaries back to the exact same layout.
"""
import struct
from typing import Any, Dict, List

import structlog

from pwgen.exceptions import ParseError, SerializationError

logger = structlog.get_logger()

_BOOL = struct.Struct("B")


class ProtocolParser:
    """
    Parse and serialize fixed-layout messages described by a data_model block list.

    Supported field types:
    - bool: one byte, 0x00 is false and anything else is true
    - char: one raw byte holding a single character (0x00 means empty)
    - string: fixed-size, NUL padded text with one byte kept for the terminator

    Every field has a constant width, so every message of a model has the
    same encoded size and needs no length prefix.
    """

    def __init__(self, data_model: Dict[str, Any]):
        """
        Initialize parser with protocol data model.

        Args:
            data_model: Protocol definition with 'blocks' list
        """
        self.data_model = data_model
        self.name = data_model.get('name', 'message')
        self.blocks: List[dict] = data_model.get('blocks', [])
        self.size = sum(self._get_field_size(block) for block in self.blocks)

    def parse(self, data: bytes) -> Dict[str, Any]:
        """
        Parse binary data into field dictionary.

        Args:
            data: Raw message bytes, exactly `size` long

        Returns:
            Dictionary mapping field names to values

        Raises:
            ParseError: If data does not match the model layout
        """
        if len(data) != self.size:
            raise ParseError(
                f"{self.name} must be {self.size} bytes, got {len(data)}",
                details={"expected": self.size, "received": len(data)},
            )

        fields = {}
        offset = 0

        for block in self.blocks:
            field_name = block['name']
            field_type = block['type']
            field_size = self._get_field_size(block)
            raw = data[offset:offset + field_size]

            try:
                if field_type == 'bool':
                    value = bool(_BOOL.unpack(raw)[0])
                elif field_type == 'char':
                    value = self._parse_char_field(raw, block)
                elif field_type == 'string':
                    value = self._parse_string_field(raw, block)
                else:
                    raise ValueError(f"Unsupported field type: {field_type}")
            except (ValueError, struct.error) as e:
                logger.error(
                    "parse_field_error",
                    model=self.name,
                    field=field_name,
                    offset=offset,
                    error=str(e)
                )
                raise ParseError(
                    f"Failed to parse field '{field_name}': {e}",
                    details={"field": field_name, "offset": offset},
                )

            fields[field_name] = value
            offset += field_size

        return fields

    def serialize(self, fields: Dict[str, Any]) -> bytes:
        """
        Serialize field dictionary to a fixed-size binary message.

        Missing fields fall back to the block default, then to the type default.

        Raises:
            SerializationError: If a value does not fit its field
        """
        result = b''

        for block in self.blocks:
            field_name = block['name']
            field_type = block['type']
            value = fields.get(field_name)

            if value is None:
                value = block.get('default', self._get_default_value(field_type))

            try:
                if field_type == 'bool':
                    result += _BOOL.pack(1 if value else 0)
                elif field_type == 'char':
                    result += self._serialize_char_field(value, block)
                elif field_type == 'string':
                    result += self._serialize_string_field(value, block)
                else:
                    raise ValueError(f"Unsupported field type: {field_type}")
            except (ValueError, UnicodeEncodeError) as e:
                logger.error(
                    "serialize_field_error",
                    model=self.name,
                    field=field_name,
                    error=str(e)
                )
                raise SerializationError(
                    f"Failed to serialize field '{field_name}': {e}",
                    details={"field": field_name},
                )

        return result

    def _parse_char_field(self, raw: bytes, block: dict) -> str:
        """Parse single character field"""
        if raw == b'\x00':
            return ''
        return self._decode(raw, block, 'latin-1')

    def _parse_string_field(self, raw: bytes, block: dict) -> str:
        """Parse NUL padded string field"""
        # The last byte is always the terminator slot
        raw = raw[:-1]
        terminator = raw.find(b'\x00')
        if terminator != -1:
            raw = raw[:terminator]
        return self._decode(raw, block)

    def _decode(self, raw: bytes, block: dict, default_encoding: str = 'utf-8') -> str:
        encoding = block.get('encoding', default_encoding)
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            # Fallback to latin-1 which never fails
            return raw.decode('latin-1')

    def _serialize_char_field(self, value: str, block: dict) -> bytes:
        """Serialize single character field"""
        if value == '':
            return b'\x00'
        encoded = value.encode(block.get('encoding', 'latin-1'))
        if len(encoded) != 1:
            raise ValueError(f"char field needs exactly one byte, got {len(encoded)}")
        return encoded

    def _serialize_string_field(self, value: str, block: dict) -> bytes:
        """Serialize string field, padding with NUL bytes"""
        encoded = value.encode(block.get('encoding', 'utf-8'))
        size = block['size']
        if len(encoded) > size - 1:
            raise ValueError(f"text of {len(encoded)} bytes exceeds capacity {size - 1}")
        if b'\x00' in encoded:
            raise ValueError("text must not contain NUL bytes")
        return encoded + b'\x00' * (size - len(encoded))

    def _get_field_size(self, block: dict) -> int:
        """Get the serialized size of a field"""
        field_type = block['type']
        if field_type in ('bool', 'char'):
            return 1
        if field_type == 'string':
            return block['size']
        raise ValueError(f"Unsupported field type: {field_type}")

    def _get_default_value(self, field_type: str) -> Any:
        """Get default value for field type"""
        if field_type == 'bool':
            return False
        return ''
