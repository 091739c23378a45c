import json
import pprint
from pathlib import Path
from typing import List

import yaml

from ..ast.nodes import Declaration
from ..semantics.analyzer import DocumentRoot

FORMATS = ("json", "yaml")


def ensure_dir(path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _dump_json(doc: DocumentRoot) -> str:
    # 2-space indent, non-ASCII kept as is, no trailing newline
    return json.dumps(doc.to_dict(), indent=2, ensure_ascii=False)


def _dump_yaml(doc: DocumentRoot) -> str:
    return yaml.safe_dump(doc.to_dict(), sort_keys=False, allow_unicode=True)


def write_document(doc: DocumentRoot, outdir, fmt: str = "json") -> Path:
    if fmt not in FORMATS:
        raise ValueError(f"unknown output format: {fmt}")
    out_path = ensure_dir(outdir) / f"natives.{fmt}"
    text = _dump_json(doc) if fmt == "json" else _dump_yaml(doc)
    out_path.write_text(text, encoding="utf-8")
    return out_path


def write_declaration_dump(name: str, declarations: List[Declaration], outdir) -> Path:
    """Debug dump of one file's parsed declarations, next to the document."""
    out_path = ensure_dir(outdir) / f"{name}.decl.txt"
    out_path.write_text(pprint.pformat(declarations, width=100) + "\n", encoding="utf-8")
    return out_path
