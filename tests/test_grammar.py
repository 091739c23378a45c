import pytest

from nativedocgen.ast import nodes
from nativedocgen.ast.nodes import BoolLiteral, HashLiteral, Identifier, IntLiteral
from nativedocgen.cli import parse_sch
from nativedocgen.parser import SchSyntaxError


def _one(src: str):
    (decl,) = parse_sch(src)
    return decl


# =========== simple forms ===========

def test_using():
    assert parse_sch('USING "commands_misc.sch"') == [nodes.Using("commands_misc.sch")]


def test_const_with_trailing_comment():
    decl = _one("CONST_INT kMax 10 // comment")
    assert decl == nodes.ConstDecl(type_name="INT", name="kMax", value=IntLiteral(10), comment=" comment")


def test_const_names_may_start_with_closing_keywords():
    assert _one("CONST_INT ENDSTRUCTX 1").name == "ENDSTRUCTX"


def test_native_types_with_and_without_alias():
    first, second = parse_sch("NATIVE ENTITY_INDEX\nNATIVE PED_INDEX : ENTITY_INDEX // peds")
    assert first == nodes.NativeTypeDecl(name="ENTITY_INDEX")
    assert second == nodes.NativeTypeDecl(name="PED_INDEX", alias_for="ENTITY_INDEX", comment=" peds")


def test_standalone_comment_lines():
    assert parse_sch("/// one\n// two") == [nodes.Comment(" one"), nodes.Comment(" two")]


def test_empty_and_blank_input():
    assert parse_sch("") == []
    assert parse_sch("\n\n  \r\n") == []


# =========== natives ===========

def test_native_signature():
    decl = _one('NATIVE PROC DO_THING(INT a, BOOL b = TRUE) = "0x1234"')
    assert decl.native_hash == 0x1234
    assert decl.comments == ()
    sig = decl.definition
    assert sig.name == "DO_THING"
    assert sig.return_type is None
    a, b = sig.params
    assert a == nodes.Parameter(name="a", type=nodes.ParamType("INT"))
    assert b.default_value == BoolLiteral(True)


def test_native_param_markers():
    decl = _one('NATIVE FUNC BOOL GET(INT &out, INT arr[], INT &vals[], STRING fmt, VARARGS3) = "0xabc"')
    assert decl.definition.return_type == "BOOL"
    types = [str(p.type) for p in decl.definition.params]
    assert types == ["INT&", "INT[]", "INT[]&", "STRING", "VARARGS3"]
    varargs = decl.definition.params[-1]
    assert varargs.name == "VARARGS3"
    assert not varargs.type.is_ref and not varargs.type.is_array


def test_native_params_may_span_lines():
    decl = _one('NATIVE DEBUGONLY PROC F(INT a,\n    INT b\n    , INT c) = "0x2"')
    assert [p.name for p in decl.definition.params] == ["a", "b", "c"]


def test_comment_block_attaches_to_native():
    decl = _one('// line one\n// line two\nNATIVE PROC X() = "0x1"')
    assert decl.comments == (" line one", " line two")


def test_blank_line_detaches_comment_block():
    comment, native = parse_sch('// standalone\n\nNATIVE PROC X() = "0x1"')
    assert comment == nodes.Comment(" standalone")
    assert native.comments == ()


def test_crlf_line_endings():
    decl = _one('// doc\r\nNATIVE PROC A() = "0x1"\r\n')
    assert decl.comments == (" doc",)


def test_malformed_native_hash_fails_the_file():
    with pytest.raises(SchSyntaxError) as info:
        parse_sch('NATIVE PROC F() = "0xZZ"')
    assert (info.value.line, info.value.column) == (1, 19)
    assert "native hash" in info.value.expected


def test_native_hash_overflow_fails_the_file():
    with pytest.raises(SchSyntaxError):
        parse_sch('NATIVE PROC F() = "0x1FFFFFFFFFFFFFFFF"')


def test_float_overflow_fails_the_file():
    with pytest.raises(SchSyntaxError) as info:
        parse_sch("CONST_FLOAT BIG " + "9" * 400 + ".0")
    assert (info.value.line, info.value.column) == (1, 17)


# =========== script functions ===========

def test_function_body_is_captured_verbatim():
    decl = _one("// adds one\nFUNC INT ADD_ONE(INT x)\n    RETURN x + 1\nENDFUNC")
    assert isinstance(decl, nodes.FunctionDecl)
    assert decl.comments == (" adds one",)
    assert decl.definition.return_type == "INT"
    assert decl.body == "\n    RETURN x + 1\n"


def test_debug_only_procedure():
    decl = _one("DEBUGONLY PROC DUMP()\n\tPRINTNL()\nENDPROC")
    assert decl.definition.name == "DUMP"
    assert decl.body == "\n\tPRINTNL()\n"


def test_first_terminator_ends_the_body():
    """No escaping: a terminator inside a string still closes the body."""
    with pytest.raises(SchSyntaxError):
        parse_sch('PROC F()\n    PRINTSTRING("ENDPROC")\nENDPROC')


# =========== structs ===========

STRUCT_SRC = """
// Player info
STRUCT PLAYER_DATA
    // leading doc
    INT health = 100 // trailing doc
    FLOAT pos[3]
    // only leading
    BOOL alive = TRUE
ENDSTRUCT
"""


def test_struct_fields():
    decl = _one(STRUCT_SRC)
    assert decl.name == "PLAYER_DATA"
    assert decl.comments == (" Player info",)
    health, pos, alive = decl.fields
    assert health == nodes.StructField(name="health", type_name="INT", default_value=IntLiteral(100),
                                       comment=" trailing doc")
    assert pos == nodes.StructField(name="pos", type_name="FLOAT", array_size=IntLiteral(3))
    assert alive.comment == " only leading"
    assert alive.default_value == BoolLiteral(True)


def test_unterminated_struct_fails():
    with pytest.raises(SchSyntaxError) as info:
        parse_sch("STRUCT S\n    INT a\n")
    assert info.value.line >= 1


# =========== enums ===========

def test_hash_enum_values_are_hashes_of_member_names():
    decl = _one("HASH_ENUM\n  MY_ENUM\n  FOO,\n  BAR\nENDENUM")
    assert decl.is_hash
    assert [(f.name, f.value) for f in decl.fields] == [
        ("FOO", HashLiteral("FOO")), ("BAR", HashLiteral("BAR"))]


def test_hash_enum_ignores_written_values():
    decl = _one("HASH_ENUM WEAPON_TYPE\n    WEAPON_PISTOL = 12,\n    WEAPON_KNIFE = HASH(\"OTHER\")\nENDENUM")
    assert [str(f.value) for f in decl.fields] == ['HASH("WEAPON_PISTOL")', 'HASH("WEAPON_KNIFE")']


ENUM_SRC = """ENUM WEAPON_SLOT
    // The first slot
    SLOT_A = 0,
    SLOT_B = SLOT_A + 1, // trailing is layout
    SLOT_C = 1 | 2
ENDENUM"""


def test_enum_values_and_member_comments():
    decl = _one(ENUM_SRC)
    assert not decl.is_hash
    a, b, c = decl.fields
    assert a == nodes.EnumField(name="SLOT_A", value=IntLiteral(0), comment=" The first slot")
    assert b.comment is None
    assert str(b.value) == "SLOT_A + 1"
    assert b.value.left == Identifier("SLOT_A")
    assert str(c.value) == "1 | 2"


def test_strict_enum_and_members_without_values():
    decl = _one("/// seats\nSTRICT_ENUM SEAT VS_DRIVER, VS_PASSENGER ENDENUM")
    assert decl.comments == (" seats",)
    assert [f.name for f in decl.fields] == ["VS_DRIVER", "VS_PASSENGER"]
    assert all(f.value is None for f in decl.fields)


def test_enum_trailing_comma_is_rejected():
    with pytest.raises(SchSyntaxError):
        parse_sch("ENUM E\n    A,\nENDENUM")


# =========== whole files ===========

def test_declarations_keep_source_order():
    src = 'USING "a.sch"\nCONST_INT A 1\n\nNATIVE T\n// note\nCONST_INT B 2'
    kinds = [type(d).__name__ for d in parse_sch(src)]
    assert kinds == ["Using", "ConstDecl", "NativeTypeDecl", "Comment", "ConstDecl"]


def test_trailing_garbage_is_located():
    with pytest.raises(SchSyntaxError) as info:
        parse_sch('USING "a.sch"\n???', filename="bad.sch")
    err = info.value
    assert (err.line, err.column) == (2, 1)
    assert '"//"' in err.expected
    assert str(err).startswith("error at bad.sch:2:1:")
