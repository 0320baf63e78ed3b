"""
Minimal CBOR (RFC 8949) support for session transcripts.

Values are described with a small intermediate representation and rendered
by a single encoder:

    Null | Bool | Int | Text | Bytes | Array | Map | Tagged

Encoding rules:
    - Shortest-form heads for integers, lengths and tags
    - Definite lengths only
    - Map entries are written in insertion order (no key sorting)

The decoder accepts exactly what the encoder can produce. Non-preferred
(overlong) heads, floats, undefined, indefinite lengths, duplicate map keys
and trailing bytes are rejected.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .types import EncodingError


# Major types
MAJOR_UNSIGNED = 0
MAJOR_NEGATIVE = 1
MAJOR_BYTES = 2
MAJOR_TEXT = 3
MAJOR_ARRAY = 4
MAJOR_MAP = 5
MAJOR_TAG = 6
MAJOR_SIMPLE = 7

# Simple values
SIMPLE_FALSE = 0xF4
SIMPLE_TRUE = 0xF5
SIMPLE_NULL = 0xF6

MAX_UINT64 = (1 << 64) - 1
MAX_DEPTH = 32

# Smallest argument each one-, two-, four- and eight-byte head may carry
_PREFERRED_MINIMUM = {24: 24, 25: 1 << 8, 26: 1 << 16, 27: 1 << 32}


class CborItem:
    """Base class for CBOR intermediate representation nodes."""
    __slots__ = ()


@dataclass(frozen=True)
class Null(CborItem):
    pass


@dataclass(frozen=True)
class Bool(CborItem):
    value: bool


@dataclass(frozen=True)
class Int(CborItem):
    value: int


@dataclass(frozen=True)
class Text(CborItem):
    value: str


@dataclass(frozen=True)
class Bytes(CborItem):
    value: bytes


@dataclass(frozen=True)
class Array(CborItem):
    items: Tuple[CborItem, ...]

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> CborItem:
        return self.items[index]


@dataclass(frozen=True)
class Map(CborItem):
    """Ordered map. Entry order is preserved by the encoder."""
    entries: Tuple[Tuple[CborItem, CborItem], ...]

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> Optional[CborItem]:
        """Look up the value for a text-string key."""
        wanted = Text(key)
        for k, v in self.entries:
            if k == wanted:
                return v
        return None


@dataclass(frozen=True)
class Tagged(CborItem):
    tag: int
    item: CborItem


NULL = Null()


def array(*items: CborItem) -> Array:
    """Build an Array from positional items."""
    return Array(tuple(items))


def text_map(*entries: Tuple[str, CborItem]) -> Map:
    """Build a Map with text-string keys, keeping the given order."""
    return Map(tuple((Text(key), value) for key, value in entries))


# MARK: - Encoding


def _head(major: int, argument: int) -> bytes:
    """Encode an initial byte plus argument in shortest form."""
    if argument < 0 or argument > MAX_UINT64:
        raise EncodingError(f"CBOR argument out of range: {argument}")

    prefix = major << 5
    if argument < 24:
        return bytes([prefix | argument])
    if argument <= 0xFF:
        return bytes([prefix | 24, argument])
    if argument <= 0xFFFF:
        return bytes([prefix | 25]) + argument.to_bytes(2, byteorder="big")
    if argument <= 0xFFFFFFFF:
        return bytes([prefix | 26]) + argument.to_bytes(4, byteorder="big")
    return bytes([prefix | 27]) + argument.to_bytes(8, byteorder="big")


def _encode_into(item: CborItem, out: bytearray) -> None:
    if isinstance(item, Null):
        out.append(SIMPLE_NULL)
    elif isinstance(item, Bool):
        out.append(SIMPLE_TRUE if item.value else SIMPLE_FALSE)
    elif isinstance(item, Int):
        if item.value >= 0:
            out += _head(MAJOR_UNSIGNED, item.value)
        else:
            out += _head(MAJOR_NEGATIVE, -1 - item.value)
    elif isinstance(item, Text):
        data = item.value.encode("utf-8")
        out += _head(MAJOR_TEXT, len(data))
        out += data
    elif isinstance(item, Bytes):
        out += _head(MAJOR_BYTES, len(item.value))
        out += item.value
    elif isinstance(item, Array):
        out += _head(MAJOR_ARRAY, len(item.items))
        for element in item.items:
            _encode_into(element, out)
    elif isinstance(item, Map):
        out += _head(MAJOR_MAP, len(item.entries))
        for key, value in item.entries:
            _encode_into(key, out)
            _encode_into(value, out)
    elif isinstance(item, Tagged):
        out += _head(MAJOR_TAG, item.tag)
        _encode_into(item.item, out)
    else:
        raise EncodingError(f"Not a CBOR item: {type(item).__name__}")


def encode(item: CborItem) -> bytes:
    """
    Encode an intermediate representation tree to CBOR bytes.

    Args:
        item: Root item

    Returns:
        Encoded bytes

    Raises:
        EncodingError: If a value cannot be represented
    """
    out = bytearray()
    _encode_into(item, out)
    return bytes(out)


# MARK: - Decoding


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, length: int) -> bytes:
        end = self.offset + length
        if end > len(self.data):
            raise EncodingError(
                f"Truncated CBOR: need {length} bytes at offset {self.offset}"
            )
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def read_head(self) -> Tuple[int, int, int]:
        initial = self.take(1)[0]
        major = initial >> 5
        info = initial & 0x1F

        if info < 24:
            return major, info, info
        if info <= 27:
            size = 1 << (info - 24)
            argument = int.from_bytes(self.take(size), byteorder="big")
            # simple values and floats are rejected later with their own error
            if major != MAJOR_SIMPLE and argument < _PREFERRED_MINIMUM[info]:
                raise EncodingError(f"Non-preferred head for argument {argument}")
            return major, info, argument
        if info == 31:
            raise EncodingError("Indefinite-length items are not supported")
        raise EncodingError(f"Reserved additional information: {info}")

    def read_item(self, depth: int) -> CborItem:
        if depth > MAX_DEPTH:
            raise EncodingError("CBOR nesting too deep")

        major, info, argument = self.read_head()

        if major == MAJOR_UNSIGNED:
            return Int(argument)
        if major == MAJOR_NEGATIVE:
            return Int(-1 - argument)
        if major == MAJOR_BYTES:
            return Bytes(self.take(argument))
        if major == MAJOR_TEXT:
            raw = self.take(argument)
            try:
                return Text(raw.decode("utf-8"))
            except UnicodeDecodeError as e:
                raise EncodingError(f"Invalid UTF-8 in text string: {e}") from e
        if major == MAJOR_ARRAY:
            return Array(tuple(self.read_item(depth + 1) for _ in range(argument)))
        if major == MAJOR_MAP:
            entries = []
            seen = set()
            for _ in range(argument):
                key = self.read_item(depth + 1)
                if key in seen:
                    raise EncodingError("Duplicate map key")
                seen.add(key)
                entries.append((key, self.read_item(depth + 1)))
            return Map(tuple(entries))
        if major == MAJOR_TAG:
            return Tagged(argument, self.read_item(depth + 1))

        # Major type 7
        if info == 20:
            return Bool(False)
        if info == 21:
            return Bool(True)
        if info == 22:
            return NULL
        raise EncodingError(f"Unsupported simple value or float (info {info})")


def decode(data: bytes) -> CborItem:
    """
    Decode exactly one CBOR item.

    Args:
        data: Encoded bytes

    Returns:
        The decoded item

    Raises:
        EncodingError: If the input is malformed, unsupported, or has
            trailing bytes
    """
    decoder = _Decoder(bytes(data))
    item = decoder.read_item(0)

    if decoder.offset != len(decoder.data):
        raise EncodingError(
            f"Trailing bytes after CBOR item: {len(decoder.data) - decoder.offset}"
        )

    return item
