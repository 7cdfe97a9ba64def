# pharbuild - Compile PHP projects into single-file phar archives
#
# Collects a project's files, strips comments and whitespace without
# shifting line numbers, and writes everything into one self-executing
# archive whose stub dispatches to a CLI or web entry point.
#
# Core concepts:
# - Compiler: registers files and index files, then compiles the archive
# - FileCollector: maps root-relative virtual paths to files on disk
# - Lexer: splits source into comment, whitespace and other tokens
# - PharWriter: writes the phar container (stub, manifest, signature)

from .errors import (
    PharBuildError,
    EnvironmentDisabledError,
    NotFoundError,
    InvalidModeError,
    EmptyIndexError,
    ManifestError,
    OutsideRootError,
    SignatureError,
)
from .config import Settings
from .patterns import PatternFilter
from .lexer import Lexer, NullLexer, PhpLexer, Token, TokenKind, get_lexer, register_lexer
from .strip import strip_whitespace
from .collector import FileCollector, FileEntry
from .stub import RuntimeMode, IndexEntry, generate_stub
from .phar import PharWriter, SignatureAlgorithm
from .compiler import Compiler, BuildResult
from .manifest import BuildManifest

__all__ = [
    # Errors
    "PharBuildError",
    "EnvironmentDisabledError",
    "NotFoundError",
    "InvalidModeError",
    "EmptyIndexError",
    "ManifestError",
    "OutsideRootError",
    "SignatureError",
    # Core
    "Compiler",
    "BuildResult",
    "FileCollector",
    "FileEntry",
    "PatternFilter",
    "RuntimeMode",
    "IndexEntry",
    "generate_stub",
    "PharWriter",
    "SignatureAlgorithm",
    # Stripping
    "Lexer",
    "NullLexer",
    "PhpLexer",
    "Token",
    "TokenKind",
    "get_lexer",
    "register_lexer",
    "strip_whitespace",
    # Configuration
    "Settings",
    "BuildManifest",
]

__version__ = "0.1.0"
