from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import yaml


class ConfigError(ValueError):
    pass


@dataclass
class GeneratorConfig:
    sch_files: Optional[str] = None
    output: Optional[str] = None
    crossmap: Optional[str] = None
    format: str = "json"
    jobs: int = 1
    dump_declarations: bool = False
    recursive: bool = True

    def merged(self, **overrides) -> "GeneratorConfig":
        """Copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> "GeneratorConfig":
        if not self.sch_files:
            raise ConfigError("no .sch file pattern given (sch_files)")
        if not self.output:
            raise ConfigError("no output directory given (output)")
        if self.format not in ("json", "yaml"):
            raise ConfigError(f"unknown output format: {self.format}")
        if self.jobs < 1:
            raise ConfigError(f"jobs must be at least 1, got {self.jobs}")
        return self


_FIELD_TYPES = {
    "sch_files": str,
    "output": str,
    "crossmap": str,
    "format": str,
    "jobs": int,
    "dump_declarations": bool,
    "recursive": bool,
}
_NULLABLE = {"sch_files", "output", "crossmap"}


def load_config(path) -> GeneratorConfig:
    """Read a YAML config file; keys are the GeneratorConfig field names."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    unknown = sorted(str(k) for k in set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(f"{path}: unknown keys: {', '.join(unknown)}")
    for key, value in data.items():
        if value is None and key in _NULLABLE:
            continue
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; jobs: true is not a job count
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(f"{path}: {key} must be {expected.__name__}, got {value!r}")
    return GeneratorConfig(**data)
