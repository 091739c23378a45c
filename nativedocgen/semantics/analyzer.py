import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..ast import nodes
from ..ast.nodes import join_comments

log = logging.getLogger(__name__)

# raw hash parsed from source -> canonical hash, or None when unknown
HashOracle = Callable[[int], Optional[int]]


def _text(expr) -> Optional[str]:
    return None if expr is None else str(expr)


def _put(out: dict, key: str, value):
    # absent values are left out of the document, never emitted as null
    if value is not None:
        out[key] = value


# ============
# Records
# ============

@dataclass
class EnumValue:
    comment: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self):
        out = {}
        _put(out, "comment", self.comment)
        _put(out, "value", self.value)
        return out


@dataclass
class EnumType:
    values: Dict[str, EnumValue]
    comment: Optional[str] = None

    def to_dict(self):
        out = {"type": "Enum"}
        _put(out, "comment", self.comment)
        out["values"] = {k: v.to_dict() for k, v in self.values.items()}
        return out


@dataclass
class StructFieldDoc:
    type_name: str
    comment: Optional[str] = None
    array_size: Optional[str] = None
    default_value: Optional[str] = None

    def to_dict(self):
        out = {}
        _put(out, "comment", self.comment)
        out["type_name"] = self.type_name
        _put(out, "array_size", self.array_size)
        _put(out, "default_value", self.default_value)
        return out


@dataclass
class StructType:
    fields: Dict[str, StructFieldDoc]
    comment: Optional[str] = None

    def to_dict(self):
        out = {"type": "Struct"}
        _put(out, "comment", self.comment)
        out["fields"] = {k: f.to_dict() for k, f in self.fields.items()}
        return out


@dataclass
class NativeType:
    comment: Optional[str] = None
    alias_for: Optional[str] = None

    def to_dict(self):
        out = {"type": "NativeType"}
        _put(out, "comment", self.comment)
        _put(out, "alias_for", self.alias_for)
        return out


@dataclass
class ConstDefinition:
    type_name: str
    value: str
    comment: Optional[str] = None

    def to_dict(self):
        out = {}
        _put(out, "comment", self.comment)
        out["type_name"] = self.type_name
        out["value"] = self.value
        return out


@dataclass
class NativeParam:
    type: str
    name: str
    default: Optional[str] = None

    def to_dict(self):
        out = {"type": self.type, "name": self.name}
        _put(out, "default", self.default)
        return out


@dataclass
class Native:
    name: str
    params: List[NativeParam]
    return_type: str = "void"
    sch_comment: Optional[str] = None

    def to_dict(self):
        out = {"name": self.name}
        _put(out, "sch_comment", self.sch_comment)
        out["params"] = [p.to_dict() for p in self.params]
        out["return_type"] = self.return_type
        return out


TYPES, CONSTANTS, NATIVES = "types", "constants", "natives"


@dataclass
class DocumentRoot:
    types: Dict[str, object] = field(default_factory=dict)
    constants: Dict[str, ConstDefinition] = field(default_factory=dict)
    natives: Dict[str, Native] = field(default_factory=dict)

    def insert(self, collection: str, key: str, record):
        # last write wins; a replaced key keeps its original position
        getattr(self, collection)[key] = record

    def to_dict(self):
        return {
            "types": {k: t.to_dict() for k, t in self.types.items()},
            "constants": {k: c.to_dict() for k, c in self.constants.items()},
            "natives": {k: n.to_dict() for k, n in self.natives.items()},
        }


# ============
# Mapping
# ============

def native_key(canonical_hash: int) -> str:
    return f"0x{canonical_hash:016X}"


def _enum(decl: nodes.EnumDecl) -> EnumType:
    values = {f.name: EnumValue(comment=f.comment, value=_text(f.value)) for f in decl.fields}
    return EnumType(values=values, comment=join_comments(decl.comments))


def _struct(decl: nodes.StructDecl) -> StructType:
    fields = {
        f.name: StructFieldDoc(
            type_name=f.type_name,
            comment=f.comment,
            array_size=_text(f.array_size),
            default_value=_text(f.default_value),
        )
        for f in decl.fields
    }
    return StructType(fields=fields, comment=join_comments(decl.comments))


def _native(decl: nodes.NativeDecl) -> Native:
    sig = decl.definition
    params = [NativeParam(type=str(p.type), name=p.name, default=_text(p.default_value))
              for p in sig.params]
    return Native(
        name=sig.name,
        params=params,
        return_type=sig.return_type or "void",
        sch_comment=join_comments(decl.comments),
    )


def map_declaration(decl: nodes.Declaration, crossmap: HashOracle) -> Optional[Tuple[str, str, object]]:
    """Document entry `(collection, key, record)` for one declaration.

    None for declarations without a documentable surface (USING, comments,
    script functions) and for natives whose hash the crossmap does not know.
    """
    if isinstance(decl, nodes.EnumDecl):
        return TYPES, decl.name, _enum(decl)
    if isinstance(decl, nodes.StructDecl):
        return TYPES, decl.name, _struct(decl)
    if isinstance(decl, nodes.NativeTypeDecl):
        return TYPES, decl.name, NativeType(comment=decl.comment, alias_for=decl.alias_for)
    if isinstance(decl, nodes.ConstDecl):
        return CONSTANTS, decl.name, ConstDefinition(
            type_name=decl.type_name, value=str(decl.value), comment=decl.comment)
    if isinstance(decl, nodes.NativeDecl):
        canonical = crossmap(decl.native_hash)
        if canonical is None:
            log.debug("dropping native %s: unknown hash 0x%016X", decl.definition.name, decl.native_hash)
            return None
        return NATIVES, native_key(canonical), _native(decl)
    # Using, Comment, FunctionDecl
    return None


def analyze(declarations: Iterable[nodes.Declaration], crossmap: HashOracle,
            document: Optional[DocumentRoot] = None) -> DocumentRoot:
    """Fold declarations, in order, into a document (a new one unless given)."""
    doc = document if document is not None else DocumentRoot()
    for decl in declarations:
        entry = map_declaration(decl, crossmap)
        if entry is not None:
            doc.insert(*entry)
    return doc


def build_document(files: Iterable[Iterable[nodes.Declaration]], crossmap: HashOracle) -> DocumentRoot:
    """Assemble one document from per-file declaration lists, in discovery order."""
    doc = DocumentRoot()
    for declarations in files:
        analyze(declarations, crossmap, doc)
    return doc
