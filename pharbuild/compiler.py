# pharbuild/compiler.py
"""
Compiles a project tree into a single executable phar archive.

Usage:
    compiler = Compiler("/path/to/project")
    compiler.add_directory("src", exclude=["!*.php"])
    compiler.add_file("LICENSE", strip=False)
    compiler.add_index_file("bin/app", "cli")
    compiler.compile("/path/to/build/app.phar")

Registration only records paths; all reading and writing happens in
compile(), which either produces a complete archive or leaves nothing
behind.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Dict, Iterable, List, Optional, Union

from .collector import FileCollector, FileEntry
from .config import Settings
from .errors import EmptyIndexError, EnvironmentDisabledError, InvalidModeError, NotFoundError
from .lexer import Lexer, select_lexer
from .phar import PharWriter, SignatureAlgorithm
from .strip import strip_source
from .stub import IndexEntry, RuntimeMode, generate_stub

logger = logging.getLogger(__name__)

# Interpreter directive, only at the very start of the file
_SHEBANG = re.compile(rb"\A#![^\r\n]*\s*")


@dataclass
class BuildResult:
    """Outcome of a successful compile."""
    output_path: Path
    alias: str
    entries: List[str] = field(default_factory=list)
    size_bytes: int = 0
    signature: Optional[str] = None
    signature_type: Optional[str] = None


class Compiler:
    """
    Creates phar archives from a project root.

    Files are registered relative to the root and keep that path inside
    the archive. At least one index file (cli or web) is required.
    """

    def __init__(
        self,
        path: Union[Path, str],
        settings: Optional[Settings] = None,
        lexer: Optional[Lexer] = None,
        signature_algorithm: Optional[Union[SignatureAlgorithm, str]] = None,
        private_key: Optional[bytes] = None,
    ):
        """
        Args:
            path: Root path of the project
            settings: Host settings (default: read from the environment)
            lexer: Lexer used for stripping (default: the configured one)
            signature_algorithm: Archive signature (default: from settings)
            private_key: PEM private key for OPENSSL signatures
        """
        self.settings = settings or Settings.from_env()
        if self.settings.readonly:
            raise EnvironmentDisabledError(
                "Creation of phar archives is disabled. "
                "Please make sure that PHARBUILD_READONLY is not set."
            )

        self._collector = FileCollector(path)
        self._index: Dict[RuntimeMode, IndexEntry] = {}
        self.lexer = lexer or select_lexer(self.settings.lexer)
        self.signature_algorithm = SignatureAlgorithm.parse(
            signature_algorithm or self.settings.signature
        )
        self.private_key = private_key

    @property
    def path(self) -> Path:
        """Root path of the project."""
        return self._collector.root

    @property
    def files(self) -> Dict[str, FileEntry]:
        """All added files by virtual path."""
        return self._collector.files

    @property
    def index_files(self) -> Dict[RuntimeMode, IndexEntry]:
        """Index files by runtime mode."""
        return dict(self._index)

    @property
    def supported_sapis(self) -> List[str]:
        """SAPI names the compiled program can be started from."""
        return [mode.value for mode in self._index]

    def supports_sapi(self, sapi: Union[RuntimeMode, str]) -> bool:
        """Whether the compiled program will support the given SAPI type."""
        if isinstance(sapi, RuntimeMode):
            sapi = sapi.value
        return str(sapi) in self.supported_sapis

    def add_file(self, file: Union[PurePath, str], strip: bool = True) -> str:
        """
        Add a file.

        Args:
            file: File path relative to the project root
            strip: Strip whitespace and comments (default: True)

        Returns:
            Virtual path of the file inside the archive
        """
        return self._collector.add_file(file, strip)

    def add_directory(
        self,
        directory: Union[PurePath, str],
        exclude: Optional[Union[str, Iterable[str]]] = None,
        strip: bool = True,
    ) -> int:
        """
        Add all files of a directory recursively.

        Args:
            directory: Directory path relative to the project root
            exclude: File patterns to exclude; "!" negates a pattern
            strip: Strip whitespace and comments (default: True)

        Returns:
            Number of files added
        """
        return self._collector.add_directory(directory, exclude, strip)

    def add_index_file(self, file: Union[PurePath, str],
                       mode: Union[RuntimeMode, str] = RuntimeMode.CLI) -> str:
        """
        Add the index file for a SAPI type.

        Args:
            file: File path relative to the project root
            mode: "cli" or "web" (default: "cli")

        Returns:
            Virtual path of the index file
        """
        try:
            mode = RuntimeMode.parse(mode)
        except ValueError:
            raise InvalidModeError(
                f'Index file type "{mode}" is invalid, must be one of: '
                + ", ".join(RuntimeMode.values())
            ) from None

        virtual = self._collector.virtual_path(file)
        real_path = self._collector.resolve(virtual)
        if not real_path.is_file():
            raise NotFoundError(f"Index file is not a file: {file}")

        self._index[mode] = IndexEntry(virtual_path=virtual, real_path=real_path)
        logger.debug(f"Added {mode.value} index file: {virtual}")
        return virtual

    def compile(self, output_file: Union[Path, str]) -> BuildResult:
        """
        Compile all files into a single phar file.

        An existing file at output_file is replaced.

        Args:
            output_file: Full path of the archive to create

        Returns:
            BuildResult describing the written archive
        """
        if not self._index:
            raise EmptyIndexError("Cannot compile when no index files are defined.")

        output_path = Path(output_file)
        if output_path.exists():
            output_path.unlink()

        name = output_path.name
        logger.info(f"Compiling {name}: {len(self._collector)} files, "
                    f"index for {', '.join(self.supported_sapis)}")

        with PharWriter(output_path, name, timestamp=self.settings.timestamp) as phar:
            phar.set_signature_algorithm(self.signature_algorithm, self.private_key)
            phar.start_buffering()

            for virtual_file, entry in self._collector.files.items():
                content = entry.real_path.read_bytes()
                if entry.strip:
                    content = strip_source(content, self.lexer)
                phar.add_from_string(virtual_file, content)

            for mode, entry in self._index.items():
                content = entry.real_path.read_bytes()
                if mode is RuntimeMode.CLI:
                    content = _SHEBANG.sub(b"", content, count=1)
                phar.add_from_string(entry.virtual_path, content)

            phar.set_stub(generate_stub(name, self._index))
            phar.stop_buffering()

            signature = phar.get_signature()
            result = BuildResult(
                output_path=output_path,
                alias=name,
                entries=phar.entries(),
                size_bytes=output_path.stat().st_size,
                signature=signature["hash"],
                signature_type=signature["hash_type"],
            )

        logger.info(f"Compiled {output_path} ({result.size_bytes} bytes, "
                    f"{len(result.entries)} entries)")
        return result
