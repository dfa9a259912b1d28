"""
Evolution config files.

The files are plain text, one option per line:

    learning        1
    populationSize  16
    initialSigma    0.25
    # comments are skipped

`key = value` is accepted as well.
"""

from __future__ import annotations
from pathlib import Path

RESOURCES = Path(__file__).resolve().parent.parent / "resources"

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def resolve_resource_path(resource_path: str) -> Path:
    """Directory holding config files; empty string means the working directory."""
    if resource_path == "":
        return Path.cwd()
    return RESOURCES / resource_path


class EvoConfig:
    """Key/value options read from an evolution config file."""

    def __init__(self, values: dict[str, str] | None = None):
        self.values = dict(values or {})

    def read_file(self, path: str | Path) -> None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"config file not found: {path}")

        with open(path, "r") as f:
            for raw in f:
                line = raw.split("#", 1)[0].strip()
                if not line:
                    continue
                if "=" in line:
                    key, value = line.split("=", 1)
                else:
                    parts = line.split(None, 1)
                    if len(parts) < 2:
                        raise ValueError(f"config line without value: {raw.strip()!r}")
                    key, value = parts
                self.values[key.strip()] = value.strip()

    @classmethod
    def from_file(cls, path: str | Path) -> "EvoConfig":
        config = cls()
        config.read_file(path)
        return config

    def get_str_value(self, key: str, default: str | None = None) -> str | None:
        return self.values.get(key, default)

    def get_bool_value(self, key: str, default: bool = False) -> bool:
        value = self.values.get(key)
        if value is None:
            return default
        word = value.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"config key {key!r} is not a boolean: {value!r}")

    def get_int_value(self, key: str, default: int = 0) -> int:
        value = self.values.get(key)
        return default if value is None else int(value)

    def get_double_value(self, key: str, default: float = 0.0) -> float:
        value = self.values.get(key)
        return default if value is None else float(value)
