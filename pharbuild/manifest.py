# pharbuild/manifest.py
"""
YAML build manifests.

A manifest describes one archive build:

    root: .
    output: build/app.phar
    signature: sha1
    files:
      - src/bootstrap.php
      - {path: LICENSE, strip: false}
    directories:
      - {path: src, exclude: ["!*.php"]}
    index:
      cli: bin/app
      web: public/index.php

The root is relative to the manifest's directory; every other path is
relative to the root.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .compiler import BuildResult, Compiler
from .config import Settings
from .errors import ManifestError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "pharbuild.yml"


@dataclass
class FileSpec:
    """A single file entry of a manifest."""
    path: str
    strip: bool = True


@dataclass
class DirectorySpec:
    """A directory entry of a manifest."""
    path: str
    exclude: List[str] = field(default_factory=list)
    strip: bool = True


def _entry(data: Any, kind: str) -> Dict[str, Any]:
    """Accept either a bare path or a mapping with a path key."""
    if isinstance(data, str):
        return {"path": data}
    if isinstance(data, dict) and isinstance(data.get("path"), str):
        return data
    raise ManifestError(f"Invalid {kind} entry: {data!r}")


def _flag(entry: Dict[str, Any], key: str, default: bool = True) -> bool:
    """Read a boolean option, rejecting strings such as "false"."""
    value = entry.get(key, default)
    if not isinstance(value, bool):
        raise ManifestError(f"Option {key!r} of {entry['path']} must be true or false, got {value!r}")
    return value


@dataclass
class BuildManifest:
    """Parsed build manifest."""
    root: Path
    output: Optional[str] = None
    files: List[FileSpec] = field(default_factory=list)
    directories: List[DirectorySpec] = field(default_factory=list)
    index: Dict[str, str] = field(default_factory=dict)
    signature: Optional[str] = None
    private_key: Optional[str] = None

    @classmethod
    def from_yaml(cls, yaml_content: str, base_dir: Path | str = ".") -> "BuildManifest":
        """Parse a manifest from a YAML string."""
        try:
            data = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid manifest YAML: {e}")

        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a mapping")

        files = []
        for item in data.get("files") or []:
            entry = _entry(item, "file")
            files.append(FileSpec(path=entry["path"], strip=_flag(entry, "strip")))

        directories = []
        for item in data.get("directories") or []:
            entry = _entry(item, "directory")
            exclude = entry.get("exclude") or []
            if isinstance(exclude, str):
                exclude = [exclude]
            directories.append(DirectorySpec(
                path=entry["path"],
                exclude=[str(p) for p in exclude],
                strip=_flag(entry, "strip"),
            ))

        index = data.get("index") or {}
        if isinstance(index, str):
            index = {"cli": index}
        if not isinstance(index, dict):
            raise ManifestError(f"Invalid index section: {index!r}")

        return cls(
            root=Path(base_dir) / str(data.get("root", ".")),
            output=data.get("output"),
            files=files,
            directories=directories,
            index={str(k): str(v) for k, v in index.items()},
            signature=data.get("signature"),
            private_key=data.get("private_key"),
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "BuildManifest":
        """Load a manifest from a YAML file."""
        path = Path(path)
        with open(path, "r") as f:
            return cls.from_yaml(f.read(), base_dir=path.parent)

    def create_compiler(self, settings: Optional[Settings] = None) -> Compiler:
        """Create a Compiler for this manifest's root and signature."""
        private_key = None
        if self.private_key:
            private_key = (self.root / self.private_key).read_bytes()

        return Compiler(
            self.root,
            settings=settings,
            signature_algorithm=self.signature,
            private_key=private_key,
        )

    def configure(self, compiler: Compiler):
        """Register this manifest's files, directories and index files."""
        for directory in self.directories:
            compiler.add_directory(directory.path, directory.exclude, directory.strip)
        for file in self.files:
            compiler.add_file(file.path, file.strip)
        for mode, path in self.index.items():
            compiler.add_index_file(path, mode)

    def build(self, output: Optional[Path | str] = None,
              settings: Optional[Settings] = None) -> BuildResult:
        """
        Compile the archive described by this manifest.

        Args:
            output: Output path, overriding the manifest's (relative to cwd)
            settings: Host settings (default: read from the environment)
        """
        if output is None:
            if not self.output:
                raise ManifestError("No output path given in manifest or on the command line")
            output = self.root / self.output

        compiler = self.create_compiler(settings)
        self.configure(compiler)
        logger.info(f"Building {output} from {compiler.path}")
        return compiler.compile(output)
