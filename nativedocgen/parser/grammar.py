"""Declaration grammar for .sch files.

Ordered choice over the raw text: each top-level alternative is tried in a
fixed order from the same position and the first one that matches wins.
Several forms share prefixes (`NATIVE PROC ...` vs `NATIVE TYPE`, a comment
block vs a standalone comment line), so the order below matters.

Every rule method returns its value, or None on failure. A failing rule may
leave `self.pos` anywhere; callers that continue after a failure go through
`_attempt`/`_optional`, which rewind. The furthest position any primitive
failed at, with what it expected there, becomes the syntax error.
"""
from typing import List, Optional

from ..ast import nodes
from . import lexical
from .errors import SchSyntaxError
from .expression import match_expression

ENUM_KEYWORDS = ("ENUM", "HASH_ENUM", "STRICT_ENUM")
FUNCTION_TERMINATORS = ("ENDFUNC", "ENDPROC")


class SchParser:
    def __init__(self, text: str, filename: Optional[str] = None):
        self.text = text
        self.filename = filename
        self.pos = 0
        self._fail_pos = 0
        self._expected = set()

    # ================
    # Entry point
    # ================
    # sch: eol? (declaration (eol declaration)*)? eol? EOF
    def parse(self) -> List[nodes.Declaration]:
        self._eol()
        declarations = self._separated(self._declaration, self._eol)
        self._eol()
        if self.pos != len(self.text):
            self._fail("end of input")
            raise SchSyntaxError.at(self.text, self._fail_pos, self._expected, self.filename)
        return declarations

    def _declaration(self):
        for rule in (self._using, self._native, self._native_type, self._function,
                     self._struct, self._enum, self._const, self._comment_line):
            decl = self._attempt(rule)
            if decl is not None:
                return decl
        return None

    # ================
    # Backtracking helpers
    # ================
    def _attempt(self, rule):
        mark = self.pos
        value = rule()
        if value is None:
            self.pos = mark
        return value

    _optional = _attempt

    def _separated(self, item, separator) -> list:
        """`item (separator item)*`, possibly empty; a dangling separator is not consumed."""
        items = []
        first = self._attempt(item)
        if first is None:
            return items
        items.append(first)
        while True:
            mark = self.pos
            if self._attempt(separator) is None:
                break
            value = self._attempt(item)
            if value is None:
                self.pos = mark
                break
            items.append(value)
        return items

    def _fail(self, label: str, pos: Optional[int] = None):
        pos = self.pos if pos is None else pos
        if pos > self._fail_pos:
            self._fail_pos = pos
            self._expected = {label}
        elif pos == self._fail_pos:
            self._expected.add(label)
        return None

    # ================
    # Primitives
    # ================
    def _literal(self, word: str):
        if self.text.startswith(word, self.pos):
            self.pos += len(word)
            return word
        return self._fail(f'"{word}"')

    def _match(self, pattern, label: str):
        m = pattern.match(self.text, self.pos)
        if m is None:
            return self._fail(label)
        self.pos = m.end()
        return m

    def _blank(self):
        self.pos = lexical.BLANK.match(self.text, self.pos).end()
        return True

    def _eol(self):
        return self._match(lexical.EOL, "end of line")

    def _one_eol(self):
        return self._match(lexical.ONE_EOL, "end of line")

    def _identifier(self) -> Optional[str]:
        m = lexical.match_identifier(self.text, self.pos)
        if m is None:
            return self._fail("identifier")
        self.pos = m.end()
        return m.group(0)

    def _string(self) -> Optional[str]:
        m = self._match(lexical.STRING, "string literal")
        return None if m is None else m.group(1)

    def _native_hash(self) -> Optional[int]:
        start = self.pos
        m = self._match(lexical.NATIVE_HASH, "native hash")
        if m is None:
            return None
        try:
            return lexical.to_u64(m.group(1))
        except ValueError:
            return self._fail("native hash", start)

    def _expression(self) -> Optional[nodes.Expression]:
        found = match_expression(self.text, self.pos)
        for label in found.expected:
            self._fail(label, found.stop)
        if found.value is None:
            return None
        self.pos = found.end
        return found.value

    # ================
    # Comments
    # ================
    # comment: "//" "/"? text-to-end-of-line
    def _comment(self) -> Optional[str]:
        m = self._match(lexical.COMMENT, '"//"')
        return None if m is None else m.group(1)

    # comments: (comment (one_eol _ comment)*)?
    def _comments(self) -> List[str]:
        def next_line():
            if self._one_eol() is None:
                return None
            return self._blank()
        return self._separated(self._comment, next_line)

    def _comment_line(self):
        text = self._comment()
        return None if text is None else nodes.Comment(text)

    # ================
    # USING "file.sch"
    # ================
    def _using(self):
        if self._literal("USING") is None:
            return None
        self._blank()
        module = self._string()
        return None if module is None else nodes.Using(module)

    # ================
    # Functions / natives
    # ================
    # function_definition: "DEBUGONLY"? _ ("PROC" _ name | "FUNC" _ type _ name) _ params
    def _function_definition(self) -> Optional[nodes.FunctionSignature]:
        self._optional(lambda: self._literal("DEBUGONLY"))
        self._blank()
        return_type = None
        if self._optional(lambda: self._literal("PROC")) is None:
            if self._literal("FUNC") is None:
                return None
            self._blank()
            return_type = self._identifier()
            if return_type is None:
                return None
        self._blank()
        name = self._identifier()
        if name is None:
            return None
        self._blank()
        params = self._function_params()
        if params is None:
            return None
        return nodes.FunctionSignature(name=name, params=tuple(params), return_type=return_type)

    def _function_params(self):
        if self._literal("(") is None:
            return None
        self._blank()
        params = self._separated(self._function_param_or_varargs, self._param_separator)
        self._blank()
        if self._literal(")") is None:
            return None
        return params

    # eol? _ "," _ eol?
    def _param_separator(self):
        self._optional(self._eol)
        self._blank()
        if self._literal(",") is None:
            return None
        self._blank()
        self._optional(self._eol)
        return True

    def _function_param_or_varargs(self):
        param = self._attempt(self._function_param)
        if param is not None:
            return param
        m = self._match(lexical.VARARGS, "varargs")
        if m is None:
            return None
        marker = m.group(0)
        return nodes.Parameter(name=marker, type=nodes.ParamType(base_type=marker))

    # type _ "&"? _ name _ "[]"? _ ("=" _ expression)?
    def _function_param(self):
        base_type = self._identifier()
        if base_type is None:
            return None
        self._blank()
        is_ref = self._optional(lambda: self._literal("&")) is not None
        self._blank()
        name = self._identifier()
        if name is None:
            return None
        self._blank()
        is_array = self._optional(lambda: self._literal("[]")) is not None
        self._blank()
        default = self._optional(self._default_value)
        return nodes.Parameter(
            name=name,
            type=nodes.ParamType(base_type=base_type, is_ref=is_ref, is_array=is_array),
            default_value=default,
        )

    def _default_value(self):
        if self._literal("=") is None:
            return None
        self._blank()
        return self._expression()

    # comments one_eol? "NATIVE" _ function_definition _ "=" _ native_hash
    def _native(self):
        comments = self._comments()
        self._optional(self._one_eol)
        if self._literal("NATIVE") is None:
            return None
        self._blank()
        definition = self._function_definition()
        if definition is None:
            return None
        self._blank()
        if self._literal("=") is None:
            return None
        self._blank()
        native_hash = self._native_hash()
        if native_hash is None:
            return None
        return nodes.NativeDecl(definition=definition, native_hash=native_hash, comments=tuple(comments))

    # "NATIVE" _ name _ (":" _ alias)? _ comment?
    def _native_type(self):
        if self._literal("NATIVE") is None:
            return None
        self._blank()
        name = self._identifier()
        if name is None:
            return None
        self._blank()
        alias_for = self._optional(self._type_alias)
        self._blank()
        comment = self._optional(self._comment)
        return nodes.NativeTypeDecl(name=name, alias_for=alias_for, comment=comment)

    def _type_alias(self):
        if self._literal(":") is None:
            return None
        self._blank()
        return self._identifier()

    # comments one_eol? function_definition body ("ENDFUNC" | "ENDPROC")
    def _function(self):
        comments = self._comments()
        self._optional(self._one_eol)
        definition = self._function_definition()
        if definition is None:
            return None
        # the body runs up to the first terminator, wherever it appears
        hits = [(self.text.find(t, self.pos), t) for t in FUNCTION_TERMINATORS]
        hits = [hit for hit in hits if hit[0] >= 0]
        if not hits:
            for terminator in FUNCTION_TERMINATORS:
                self._fail(f'"{terminator}"', len(self.text))
            return None
        end, terminator = min(hits)
        if end == self.pos:
            return self._fail("function body")
        body = self.text[self.pos:end]
        self.pos = end + len(terminator)
        return nodes.FunctionDecl(definition=definition, body=body, comments=tuple(comments))

    # ================
    # STRUCT
    # ================
    # comments one_eol? _ "STRUCT" _ name eol (field (eol field)*)? eol "ENDSTRUCT"
    def _struct(self):
        comments = self._comments()
        self._optional(self._one_eol)
        self._blank()
        if self._literal("STRUCT") is None:
            return None
        self._blank()
        name = self._identifier()
        if name is None or self._eol() is None:
            return None
        fields = self._separated(self._struct_field, self._eol)
        if self._eol() is None or self._literal("ENDSTRUCT") is None:
            return None
        return nodes.StructDecl(name=name, fields=tuple(fields), comments=tuple(comments))

    # _ (comments eol)? _ type _ name _ ("[" size "]")? _ ("=" _ default)? _ comment?
    def _struct_field(self):
        self._blank()
        leading = self._optional(self._struct_field_comment)
        self._blank()
        type_name = self._identifier()
        if type_name is None:
            return None
        self._blank()
        name = self._identifier()
        if name is None:
            return None
        self._blank()
        array_size = self._optional(self._array_size)
        self._blank()
        default = self._optional(self._default_value)
        self._blank()
        trailing = self._optional(self._comment)
        return nodes.StructField(
            name=name,
            type_name=type_name,
            array_size=array_size,
            default_value=default,
            # a same-line comment wins over the block above the field
            comment=trailing if trailing is not None else leading,
        )

    def _struct_field_comment(self):
        comments = self._comments()
        if not comments or self._eol() is None:
            return None
        return nodes.join_comments(comments)

    def _array_size(self):
        if self._literal("[") is None:
            return None
        size = self._expression()
        if size is None or self._literal("]") is None:
            return None
        return size

    # ================
    # ENUM / STRICT_ENUM / HASH_ENUM
    # ================
    def _enum(self):
        for keyword in ENUM_KEYWORDS:
            decl = self._attempt(lambda: self._enum_with_keyword(keyword))
            if decl is not None:
                return decl
        return None

    # comments one_eol? _ KEYWORD eol? name layout (field ("," field)*)? layout "ENDENUM"
    def _enum_with_keyword(self, keyword: str):
        comments = self._comments()
        self._optional(self._one_eol)
        self._blank()
        if self._literal(keyword) is None:
            return None
        self._optional(self._eol)
        name = self._identifier()
        if name is None:
            return None
        self._blank()
        self._layout()
        self._blank()
        fields = self._separated(self._enum_field, self._enum_separator)
        self._blank()
        self._layout()
        if self._literal("ENDENUM") is None:
            return None
        if keyword == "HASH_ENUM":
            # hash enums are keyed by the hash of each member's own name
            fields = [nodes.EnumField(name=f.name, value=nodes.HashLiteral(f.name), comment=f.comment)
                      for f in fields]
        return nodes.EnumDecl(name=name, fields=tuple(fields), comments=tuple(comments),
                              is_hash=keyword == "HASH_ENUM")

    def _layout(self):
        """Line breaks and comments between enum members; never fails."""
        while True:
            if self._optional(self._eol) is not None:
                continue
            if self._field_comment_ahead():
                return True
            if self._optional(self._comment) is None:
                return True

    def _field_comment_ahead(self) -> bool:
        """A comment on its own line directly above a member belongs to that member."""
        line_start = max(self.text.rfind("\n", 0, self.pos), self.text.rfind("\r", 0, self.pos)) + 1
        if self.text[line_start:self.pos].strip(" \t"):
            return False
        mark = self.pos
        ahead = (self._comment() is not None and self._eol() is not None
                 and self._identifier() is not None)
        self.pos = mark
        return ahead

    # _ layout _ "," layout _
    def _enum_separator(self):
        self._blank()
        self._layout()
        self._blank()
        if self._literal(",") is None:
            return None
        self._layout()
        self._blank()
        return True

    # (comment eol)? name (_ "=" _ expression)?
    def _enum_field(self):
        comment = self._optional(self._enum_field_comment)
        name = self._identifier()
        if name is None:
            return None
        value = self._optional(self._enum_value)
        return nodes.EnumField(name=name, value=value, comment=comment)

    def _enum_field_comment(self):
        text = self._comment()
        if text is None or self._eol() is None:
            return None
        return text

    def _enum_value(self):
        self._blank()
        if self._literal("=") is None:
            return None
        self._blank()
        return self._expression()

    # ================
    # CONST_<type> name value
    # ================
    def _const(self):
        if self._literal("CONST_") is None:
            return None
        type_name = self._identifier()
        if type_name is None:
            return None
        self._blank()
        name = self._identifier()
        if name is None:
            return None
        self._blank()
        value = self._expression()
        if value is None:
            return None
        self._blank()
        comment = self._optional(self._comment)
        return nodes.ConstDecl(type_name=type_name, name=name, value=value, comment=comment)


def parse_sch(text: str, filename: Optional[str] = None) -> List[nodes.Declaration]:
    """Parse a whole declaration file. Raises SchSyntaxError on any mismatch."""
    return SchParser(text, filename).parse()
