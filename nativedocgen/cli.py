import argparse
import glob
import logging
import os
import sys
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .ast.nodes import Declaration
from .codegen import generate, write_declaration_dump
from .config import ConfigError, GeneratorConfig, load_config
from .crossmap import Crossmap, CrossmapError, identity_crossmap
from .parser.errors import SchSyntaxError
from .parser.grammar import parse_sch
from .semantics.analyzer import build_document

log = logging.getLogger(__name__)


@dataclass
class ParseResult:
    name: str
    declarations: Optional[List[Declaration]] = None
    error: Optional[SchSyntaxError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def discover_files(pattern: str, recursive: bool = True) -> List[str]:
    return sorted(p for p in glob.glob(pattern, recursive=recursive) if os.path.isfile(p))


def parse_text(name: str, text: str) -> ParseResult:
    try:
        return ParseResult(name, declarations=parse_sch(text, name))
    except SchSyntaxError as e:
        return ParseResult(name, error=e)


def _parse_path(path: str) -> Optional[ParseResult]:
    name = os.path.basename(path)
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        log.warning("Skipping unreadable file %s: %s", path, e)
        return None
    return parse_text(name, text)


def parse_files(paths: List[str], jobs: int = 1) -> List[ParseResult]:
    """Parse every file independently; results keep the order of `paths`."""
    if jobs > 1 and len(paths) > 1:
        with ProcessPoolExecutor(max_workers=jobs) as pool:
            results = list(pool.map(_parse_path, paths))
    else:
        results = [_parse_path(p) for p in paths]
    return [r for r in results if r is not None]


def run(cfg: GeneratorConfig) -> int:
    cfg.validate()
    if cfg.crossmap:
        crossmap = Crossmap.load(cfg.crossmap)
    else:
        log.warning("No crossmap configured; every native hash is treated as canonical")
        crossmap = identity_crossmap

    paths = discover_files(cfg.sch_files, cfg.recursive)
    results = parse_files(paths, cfg.jobs)

    parsed = []
    for result in results:
        if result.ok:
            log.info("Parsed %s", result.name)
            parsed.append(result.declarations)
            if cfg.dump_declarations:
                write_declaration_dump(result.name, result.declarations, cfg.output)
        else:
            log.error("Failed to parse %s:\n%s", result.name, result.error)

    log.info("Generating natives.%s", cfg.format)
    document = build_document(parsed, crossmap)
    out_path = generate(document, cfg.output, cfg.format)
    log.info("Wrote %d types, %d constants, %d natives to %s",
             len(document.types), len(document.constants), len(document.natives), out_path)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="nativedocgen",
        description="Extract type, constant and native documentation from .sch declaration files.",
    )
    ap.add_argument("-s", "--sch-files", help="glob pattern for .sch files")
    ap.add_argument("-o", "--output", help="output directory")
    ap.add_argument("-c", "--crossmap", help="native hash crossmap (YAML or JSON)")
    ap.add_argument("--config", help="YAML config file; flags override its values")
    ap.add_argument("-f", "--format", choices=("json", "yaml"), default=None)
    ap.add_argument("-j", "--jobs", type=int, default=None, help="parse files in N processes")
    ap.add_argument("--dump-declarations", action="store_true", default=None,
                    help="also write each file's parsed declarations")
    ap.add_argument("--no-recursive", dest="recursive", action="store_false", default=None,
                    help="do not let ** in the pattern span directories")
    verbosity = ap.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true")
    verbosity.add_argument("-q", "--quiet", action="store_true")
    return ap


def main(argv=None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = load_config(args.config) if args.config else GeneratorConfig()
        cfg = cfg.merged(
            sch_files=args.sch_files,
            output=args.output,
            crossmap=args.crossmap,
            format=args.format,
            jobs=args.jobs,
            dump_declarations=args.dump_declarations,
            recursive=args.recursive,
        )
        return run(cfg)
    except (ConfigError, CrossmapError) as e:
        log.error("%s", e)
        return 2
    except OSError as e:
        log.error("Cannot write output: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
