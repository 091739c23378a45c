"""Expression sub-grammar: literals, constant references and + - * / | arithmetic.

The grammar is an LALR lark grammar. Declarations embed expressions in the
middle of a line, so instead of handing lark a bounded string the tokens are
lexed here one at a time (only the terminals the parser can accept next are
tried) and fed to an interactive parser. The longest prefix that forms a
complete expression wins; whatever follows is left for the declaration grammar.

Precedence, tightest first: atoms, `|`, `*` `/`, `+` `-`. All binary
operators are left-associative.
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional

from lark import Lark, Token, Transformer, v_args

from ..ast import nodes
from . import lexical
from .errors import SchSyntaxError

EXPRESSION_GRAMMAR = r"""
?expr: sum

?sum: product
    | sum _PLUS product         -> add
    | sum _MINUS product        -> subtract

?product: bitwise
    | product _STAR bitwise     -> multiply
    | product _SLASH bitwise    -> divide

?bitwise: atom
    | bitwise _PIPE atom        -> bit_or

?atom: literal
    | IDENT                     -> identifier
    | _LPAR expr _RPAR          -> parenthesized

?literal: _HASH_OPEN STRING _RPAR -> hash_literal
    | FLOAT                     -> float_literal
    | INT                       -> int_literal
    | BOOL                      -> bool_literal

_PLUS: "+"
_MINUS: "-"
_STAR: "*"
_SLASH: "/"
_PIPE: "|"
_LPAR: "("
_RPAR: ")"
_HASH_OPEN: "HASH("

%declare INT FLOAT BOOL IDENT STRING
"""

# terminal name -> what an error message calls it
TERMINAL_LABELS = {
    "_PLUS": '"+"', "_MINUS": '"-"', "_STAR": '"*"', "_SLASH": '"/"',
    "_PIPE": '"|"', "_LPAR": '"("', "_RPAR": '")"', "_HASH_OPEN": '"HASH("',
    "INT": "integer", "FLOAT": "float", "BOOL": "boolean",
    "IDENT": "identifier", "STRING": "string literal",
}

_OPERATORS = (
    ("_PLUS", "+"), ("_MINUS", "-"), ("_STAR", "*"), ("_SLASH", "/"),
    ("_PIPE", "|"), ("_LPAR", "("), ("_RPAR", ")"),
)


@v_args(inline=True)
class ExpressionTransformer(Transformer):
    # --- operators ---
    def add(self, left, right): return nodes.Add(left, right)
    def subtract(self, left, right): return nodes.Subtract(left, right)
    def multiply(self, left, right): return nodes.Multiply(left, right)
    def divide(self, left, right): return nodes.Divide(left, right)
    def bit_or(self, left, right): return nodes.BitOr(left, right)
    def parenthesized(self, inner): return nodes.Parenthesized(inner)

    # --- atoms ---
    def identifier(self, tok): return nodes.Identifier(str(tok))
    def hash_literal(self, tok): return nodes.HashLiteral(str(tok))
    def int_literal(self, tok): return nodes.IntLiteral(lexical.to_int32(tok))
    def float_literal(self, tok): return nodes.FloatLiteral(lexical.to_float32(tok))
    def bool_literal(self, tok): return nodes.BoolLiteral(str(tok).lower() == "true")


_EXPR_PARSER = Lark(
    EXPRESSION_GRAMMAR,
    parser="lalr",
    lexer="basic",
    start="expr",
    transformer=ExpressionTransformer(),
)


@dataclass
class ExpressionMatch:
    """Outcome of matching an expression at some position.

    `value` is None when no complete expression starts there. `stop` is where
    lexing gave up and `expected` what would have been accepted at `stop`;
    both feed the enclosing grammar's error report.
    """
    value: Optional[nodes.Expression]
    end: int
    stop: int
    expected: FrozenSet[str]


def _lex(text: str, pos: int, accepts):
    """Next token at `pos`, restricted to the terminals in `accepts`."""
    if "_HASH_OPEN" in accepts and text.startswith("HASH(", pos):
        return Token("_HASH_OPEN", "HASH(", start_pos=pos), pos + 5
    if "STRING" in accepts:
        m = lexical.STRING.match(text, pos)
        if m is not None:
            return Token("STRING", m.group(1), start_pos=pos), m.end()
    for name, op in _OPERATORS:
        if name in accepts and text.startswith(op, pos):
            return Token(name, op, start_pos=pos), pos + 1
    if "FLOAT" in accepts or "INT" in accepts:
        m = lexical.NUMBER.match(text, pos)
        if m is not None:
            try:
                if m.group(1):
                    lexical.to_float32(m.group(0))
                    return Token("FLOAT", m.group(0), start_pos=pos), m.end()
                lexical.to_int32(m.group(0))
                return Token("INT", m.group(0), start_pos=pos), m.end()
            except ValueError:
                return None
    if "BOOL" in accepts:
        m = lexical.BOOL.match(text, pos)
        if m is not None:
            return Token("BOOL", m.group(0), start_pos=pos), m.end()
    if "IDENT" in accepts:
        m = lexical.match_identifier(text, pos)
        if m is not None:
            return Token("IDENT", m.group(0), start_pos=pos), m.end()
    return None


def _skip_blank(text: str, pos: int) -> int:
    return lexical.BLANK.match(text, pos).end()


def match_expression(text: str, pos: int) -> ExpressionMatch:
    """Match the longest complete expression starting exactly at `pos`."""
    interactive = _EXPR_PARSER.parse_interactive("")
    checkpoint = None
    cursor = pos
    start = pos
    last_token = None
    while True:
        accepts = interactive.accepts()
        if "$END" in accepts:
            checkpoint = (interactive.copy(), cursor, last_token)
        # only spaces and tabs separate tokens, and none before the first
        start = pos if last_token is None else _skip_blank(text, cursor)
        lexed = _lex(text, start, accepts)
        if lexed is None:
            break
        last_token, cursor = lexed
        interactive.feed_token(last_token)

    expected = frozenset(TERMINAL_LABELS[t] for t in accepts if t in TERMINAL_LABELS)
    if checkpoint is None:
        return ExpressionMatch(None, pos, start, expected)
    done, end, token = checkpoint
    return ExpressionMatch(done.feed_eof(token), end, start, expected)


def parse_expression(text: str) -> nodes.Expression:
    """Parse `text` as a single expression; surrounding blanks are ignored."""
    pos = _skip_blank(text, 0)
    found = match_expression(text, pos)
    end = _skip_blank(text, found.end)
    if found.value is None or end != len(text):
        expected = found.expected if found.value is None else found.expected | {"end of input"}
        raise SchSyntaxError.at(text, found.stop, expected)
    return found.value
