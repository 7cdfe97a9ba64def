# pharbuild/stub.py
"""
Bootstrap stub for compiled archives.

The stub is the PHP script the interpreter runs when the archive is
executed. It maps the archive under its alias, then requires the index
file registered for the current SAPI (command line or web server), or
exits with an explanation when the archive has no index for it.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Union

HALT_COMPILER = "__HALT_COMPILER();"

CLI_UNSUPPORTED = (
    "This program can not be invoked via the CLI version of PHP, "
    "use the Web interface instead."
)
WEB_UNSUPPORTED = (
    "This program can not be invoked via the Web interface, "
    "use the CLI version of PHP instead."
)


class RuntimeMode(Enum):
    """SAPI types an archive can be started from."""
    CLI = "cli"
    HOSTED = "web"

    @classmethod
    def parse(cls, value: Union["RuntimeMode", str]) -> "RuntimeMode":
        """
        Convert a mode name to a RuntimeMode.

        Raises ValueError for anything but "cli" or "web".
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())

    @classmethod
    def values(cls) -> List[str]:
        return [mode.value for mode in cls]


@dataclass(frozen=True)
class IndexEntry:
    """An index file: its path inside the archive and on disk."""
    virtual_path: str
    real_path: Path


def _php_string(value: str) -> str:
    """Quote a value as a single-quoted PHP string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _dispatch(name: str, index: Mapping[RuntimeMode, IndexEntry],
              mode: RuntimeMode, unsupported: str) -> str:
    entry = index.get(mode)
    if entry is None:
        return f" exit({_php_string(unsupported)}.PHP_EOL);"
    return f" require {_php_string(f'phar://{name}/{entry.virtual_path}')};"


def generate_stub(name: str, index: Mapping[RuntimeMode, IndexEntry]) -> str:
    """
    Generate the stub for an archive.

    Args:
        name: Archive alias, used to map and address the archive
        index: Index files by runtime mode

    Returns:
        PHP source of the stub, ending with __HALT_COMPILER();
    """
    stub = ["#!/usr/bin/env php", "<?php"]
    stub.append(f"Phar::mapPhar({_php_string(name)});")
    stub.append("if (PHP_SAPI == 'cli') {")
    stub.append(_dispatch(name, index, RuntimeMode.CLI, CLI_UNSUPPORTED))
    stub.append("} else {")
    stub.append(_dispatch(name, index, RuntimeMode.HOSTED, WEB_UNSUPPORTED))
    stub.append("}")
    stub.append(HALT_COMPILER)

    return "\n".join(stub)
