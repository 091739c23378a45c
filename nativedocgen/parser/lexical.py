"""Lexical primitives shared by the declaration and expression grammars.

There is no separate tokenizer pass: the grammars match these patterns
directly against the raw source text at the current position.
"""
import math
import re
import struct

# horizontal whitespace, never fails, never crosses a line
BLANK = re.compile(r"[ \t]*")
# one or more line-break characters; swallows indentation too
EOL = re.compile(r"[\r\n \t]+")
# exactly one logical line end
ONE_EOL = re.compile(r"\r?\n")

IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_!.+]*")
RESERVED = frozenset({"ENDSTRUCT", "ENDENUM"})

STRING = re.compile(r'"([^"]*)"')
NATIVE_HASH = re.compile(r'"0x([0-9a-fA-F]+)"')
NUMBER = re.compile(r"-?[0-9]+(\.[0-9]+)?")
BOOL = re.compile(r"(?i:true|false)(?![A-Za-z0-9_!.+])")
COMMENT = re.compile(r"///?([^\r\n]*)")
VARARGS = re.compile(r"VARARGS[0-9]?")

INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1
U64_MAX = 2 ** 64 - 1


def match_identifier(text: str, pos: int):
    """Identifier at `pos`, or None. The closing keywords are not identifiers."""
    m = IDENTIFIER.match(text, pos)
    if m is None or m.group(0) in RESERVED:
        return None
    return m


def to_int32(text: str) -> int:
    value = int(text)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"integer literal out of range: {text}")
    return value


def to_float32(text: str) -> float:
    value = float(text)
    # very long digit runs come back from float() as inf instead of raising
    if math.isinf(value):
        raise ValueError(f"float literal out of range: {text}")
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        raise ValueError(f"float literal out of range: {text}") from None


def to_u64(hex_digits: str) -> int:
    value = int(hex_digits, 16)
    if value > U64_MAX:
        raise ValueError(f"native hash out of range: 0x{hex_digits}")
    return value
