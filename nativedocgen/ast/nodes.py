from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple, Union
import struct


def _round_f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def format_float32(value: float) -> str:
    """Shortest decimal text that reads back as the same float32, never in exponent form."""
    text = repr(value)
    for precision in range(1, 10):
        candidate = "%.*g" % (precision, value)
        if _round_f32(float(candidate)) == value:
            text = candidate
            break
    return format(Decimal(text), "f")


# ============
# Expressions
# ============

@dataclass(frozen=True)
class IntLiteral:
    value: int

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class FloatLiteral:
    value: float

    def __str__(self):
        return format_float32(self.value)


@dataclass(frozen=True)
class BoolLiteral:
    value: bool

    def __str__(self):
        return "true" if self.value else "false"


@dataclass(frozen=True)
class HashLiteral:
    # the hashed text, e.g. HASH("FOO") -> "FOO"
    text: str

    def __str__(self):
        return f'HASH("{self.text}")'


@dataclass(frozen=True)
class Identifier:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Parenthesized:
    inner: "Expression"

    def __str__(self):
        return f"({self.inner})"


@dataclass(frozen=True)
class BinaryOp:
    left: "Expression"
    right: "Expression"

    op = "?"

    def __str__(self):
        return f"{self.left} {self.op} {self.right}"


@dataclass(frozen=True)
class Add(BinaryOp):
    op = "+"


@dataclass(frozen=True)
class Subtract(BinaryOp):
    op = "-"


@dataclass(frozen=True)
class Multiply(BinaryOp):
    op = "*"


@dataclass(frozen=True)
class Divide(BinaryOp):
    op = "/"


@dataclass(frozen=True)
class BitOr(BinaryOp):
    op = "|"


Literal = Union[IntLiteral, FloatLiteral, BoolLiteral, HashLiteral]
Expression = Union[Literal, Identifier, Parenthesized, BinaryOp]


# =============
# Declarations
# =============

@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Using:
    module: str


@dataclass(frozen=True)
class EnumField:
    name: str
    value: Optional[Expression] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class EnumDecl:
    name: str
    fields: Tuple[EnumField, ...] = ()
    comments: Tuple[str, ...] = ()
    is_hash: bool = False


@dataclass(frozen=True)
class StructField:
    name: str
    type_name: str
    array_size: Optional[Expression] = None
    default_value: Optional[Expression] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class StructDecl:
    name: str
    fields: Tuple[StructField, ...] = ()
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConstDecl:
    type_name: str
    name: str
    value: Expression
    comment: Optional[str] = None


@dataclass(frozen=True)
class NativeTypeDecl:
    name: str
    alias_for: Optional[str] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class ParamType:
    base_type: str
    is_ref: bool = False
    is_array: bool = False

    def __str__(self):
        # array marker goes before the reference marker: INT[]&
        return self.base_type + ("[]" if self.is_array else "") + ("&" if self.is_ref else "")


@dataclass(frozen=True)
class Parameter:
    name: str
    type: ParamType
    default_value: Optional[Expression] = None


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    params: Tuple[Parameter, ...] = ()
    return_type: Optional[str] = None


@dataclass(frozen=True)
class NativeDecl:
    definition: FunctionSignature
    native_hash: int
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FunctionDecl:
    definition: FunctionSignature
    body: str
    comments: Tuple[str, ...] = ()


Declaration = Union[Comment, Using, EnumDecl, StructDecl, ConstDecl,
                    NativeTypeDecl, NativeDecl, FunctionDecl]


def join_comments(comments) -> Optional[str]:
    """Comment block text as stored in the document; None for an empty block."""
    if not comments:
        return None
    return "\r\n".join(comments)
