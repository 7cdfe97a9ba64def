# pharbuild/collector.py
"""
Collects project files to be archived.

Every file is registered under its virtual path: the forward-slash path
relative to the project root, which is also its name inside the archive.
Registering the same virtual path again replaces the earlier record but
keeps its position, so archive layout only depends on the order of the
first registration.

Directory walks are sorted by name at every level. Symlinked files are
collected (their target is archived), symlinked directories are not
descended into.
"""

import logging
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Dict, Iterable, Iterator, Optional, Union

from .errors import NotFoundError, OutsideRootError
from .patterns import PatternFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """A file registered for the archive."""
    real_path: Path
    strip: bool = True


class FileCollector:
    """
    Registry of files below a project root.

    Usage:
        collector = FileCollector("/path/to/project")
        collector.add_file("bootstrap.php")
        collector.add_directory("src", exclude=["!*.php"])
    """

    def __init__(self, root: Union[Path, str]):
        real_root = Path(os.path.realpath(root))
        if not real_root.is_dir():
            raise NotFoundError(f"Project root not found: {root}")
        self.root = real_root
        self._files: Dict[str, FileEntry] = {}

    @property
    def files(self) -> Dict[str, FileEntry]:
        """Registered files by virtual path."""
        return dict(self._files)

    def virtual_path(self, path: Union[PurePath, str]) -> str:
        """
        Normalize a path to its root-relative, forward-slash form.

        Absolute paths below the root are made relative. Raises OutsideRootError
        for paths that point outside the root.
        """
        path = PurePath(path)
        if path.is_absolute():
            # the root is canonical, the given path may not be
            canonical = PurePath(os.path.realpath(path.parent)) / path.name
            for candidate in (path, canonical):
                try:
                    path = candidate.relative_to(self.root)
                    break
                except ValueError:
                    continue
            else:
                raise OutsideRootError(f"Path {path} is outside the project root {self.root}")

        virtual = posixpath.normpath(path.as_posix())
        if virtual == ".." or virtual.startswith("../") or virtual.startswith("/"):
            raise OutsideRootError(f"Path {path} is outside the project root {self.root}")
        return virtual

    def resolve(self, path: Union[PurePath, str]) -> Path:
        """
        Resolve a root-relative path to its real path on disk.

        Raises NotFoundError if nothing exists there.
        """
        real_path = Path(os.path.realpath(self.root / self.virtual_path(path)))
        if not real_path.exists():
            raise NotFoundError(f"File not found: {path} (in {self.root})")
        return real_path

    def add_file(self, path: Union[PurePath, str], strip: bool = True) -> str:
        """
        Register a single file.

        Args:
            path: File path relative to the project root
            strip: Strip whitespace and comments when archiving

        Returns:
            The virtual path the file was registered under
        """
        virtual = self.virtual_path(path)
        real_path = self.resolve(virtual)
        if real_path.is_dir():
            raise NotFoundError(f"Not a file: {path} (use add_directory for directories)")

        self._files[virtual] = FileEntry(real_path=real_path, strip=bool(strip))
        logger.debug(f"Added file: {virtual} -> {real_path}")
        return virtual

    def add_directory(
        self,
        directory: Union[PurePath, str],
        exclude: Optional[Union[str, Iterable[str]]] = None,
        strip: bool = True,
    ) -> int:
        """
        Register all files below a directory.

        Args:
            directory: Directory path relative to the project root
            exclude: Exclude pattern(s) matched against root-relative paths
            strip: Strip whitespace and comments when archiving

        Returns:
            Number of files registered
        """
        virtual_dir = self.virtual_path(directory)
        real_dir = self.resolve(virtual_dir)
        if not real_dir.is_dir():
            raise NotFoundError(f"Not a directory: {directory}")

        pattern_filter = PatternFilter(exclude)
        base = self.root / virtual_dir
        added = 0

        for file_path in self.walk(base):
            relative = file_path.relative_to(base).as_posix()
            virtual = relative if virtual_dir == "." else f"{virtual_dir}/{relative}"

            if not pattern_filter.includes(virtual):
                logger.debug(f"Excluded: {virtual}")
                continue

            self.add_file(virtual, strip)
            added += 1

        logger.debug(f"Added directory: {virtual_dir} ({added} files)")
        return added

    def walk(self, directory: Path) -> Iterator[Path]:
        """Yield regular files below a directory, sorted by name at each level."""
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            if entry.is_symlink():
                if entry.is_dir():
                    logger.debug(f"Skipping symlinked directory: {entry.path}")
                    continue
                if not entry.is_file():
                    logger.warning(f"Skipping broken symlink: {entry.path}")
                    continue
                yield Path(entry.path)
            elif entry.is_dir():
                yield from self.walk(Path(entry.path))
            elif entry.is_file():
                yield Path(entry.path)

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, virtual_path: str) -> bool:
        return virtual_path in self._files
