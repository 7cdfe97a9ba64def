# pharbuild/lexer.py
"""
Lexers used by the whitespace stripper.

A lexer splits source text into tokens of three kinds: comments,
whitespace and everything else. Joining the token texts always gives
back the original source.

Lexers are registered by name and looked up when a Compiler is created:

    @register_lexer("php")
    class PhpLexer(Lexer):
        ...
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Iterator, Optional, Type

logger = logging.getLogger(__name__)

# Global lexer registry
_LEXERS: Dict[str, Type["Lexer"]] = {}


class TokenKind(Enum):
    """What the stripper needs to know about a token."""
    COMMENT = auto()
    WHITESPACE = auto()
    OTHER = auto()


@dataclass(frozen=True)
class Token:
    """A span of source text with its kind."""
    kind: TokenKind
    text: str


class Lexer(ABC):
    """Base class for source lexers."""

    @abstractmethod
    def tokenize(self, source: str) -> Iterator[Token]:
        """
        Split source into tokens.

        The concatenated token texts must equal the source exactly.
        """
        pass


def register_lexer(name: str) -> Callable:
    """Decorator to register a lexer class under a name."""
    def decorator(cls: Type[Lexer]) -> Type[Lexer]:
        if name in _LEXERS:
            logger.warning(f"Overwriting lexer {name}")
        _LEXERS[name] = cls
        return cls
    return decorator


def get_lexer(name: str) -> Optional[Lexer]:
    """
    Get a lexer instance by name.

    Returns None if no lexer is registered under that name.
    """
    lexer_cls = _LEXERS.get(name.lower())
    if lexer_cls is None:
        return None
    return lexer_cls()


def list_lexers() -> Dict[str, Type[Lexer]]:
    """List all registered lexers."""
    return dict(_LEXERS)


def select_lexer(name: Optional[str]) -> Lexer:
    """
    Pick the lexer configured for this host.

    Falls back to the passthrough NullLexer when the name is unknown, so
    stripping silently becomes a no-op instead of failing the build.
    """
    lexer = get_lexer(name) if name else None
    if lexer is None:
        logger.warning(f"Lexer {name!r} is not available, sources will not be stripped")
        return NullLexer()
    return lexer


@register_lexer("null")
class NullLexer(Lexer):
    """Lexer that treats the whole source as one opaque token."""

    def tokenize(self, source: str) -> Iterator[Token]:
        if source:
            yield Token(TokenKind.OTHER, source)


# Characters PHP accepts in identifiers beyond ASCII
_LABEL = r"[A-Za-z_\x80-\U0010FFFF][A-Za-z0-9_\x80-\U0010FFFF]*"

_OPEN_TAG = re.compile(r"<\?php(?:\r\n|[ \t\r\n]|\Z)|<\?=", re.IGNORECASE)

_PHP_TOKEN = re.compile(
    r"""
      (?P<whitespace>[ \t\r\n]+)
    | (?P<block_comment>/\*.*?(?:\*/|\Z))
    | (?P<line_comment>(?://|\#(?!\[))(?:[^\r\n?]|\?(?!>))*)
    | (?P<heredoc><<<[ \t]*(?P<quote>["']?)(?P<label>""" + _LABEL + r""")(?P=quote)(?:\r\n|\r|\n))
    | (?P<close_tag>\?>(?:\r\n|\r|\n)?)
    | (?P<string>["'`])
    | (?P<word>[A-Za-z0-9_\x80-\U0010FFFF$\\]+)
    | (?P<char>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_IDENT_CHAR = r"[A-Za-z0-9_\x80-\U0010FFFF]"


@register_lexer("php")
class PhpLexer(Lexer):
    """
    Lexer for PHP source files.

    Only distinguishes what matters for stripping. Inline HTML, tags,
    strings and heredocs are opaque; comments and whitespace are only
    recognized between <?php and ?>.
    """

    def tokenize(self, source: str) -> Iterator[Token]:
        pos = 0
        end = len(source)
        in_php = False

        while pos < end:
            if not in_php:
                tag = _OPEN_TAG.search(source, pos)
                if tag is None:
                    yield Token(TokenKind.OTHER, source[pos:])
                    return
                if tag.start() > pos:
                    yield Token(TokenKind.OTHER, source[pos:tag.start()])
                yield Token(TokenKind.OTHER, tag.group())
                pos = tag.end()
                in_php = True
                continue

            match = _PHP_TOKEN.match(source, pos)
            kind = match.lastgroup

            if kind == "whitespace":
                yield Token(TokenKind.WHITESPACE, match.group())
                pos = match.end()
            elif kind in ("block_comment", "line_comment"):
                yield Token(TokenKind.COMMENT, match.group())
                pos = match.end()
            elif kind == "heredoc":
                stop = self._heredoc_end(source, match.end(), match.group("label"))
                yield Token(TokenKind.OTHER, source[pos:stop])
                pos = stop
            elif kind == "string":
                stop = self._quoted_end(source, pos)
                yield Token(TokenKind.OTHER, source[pos:stop])
                pos = stop
            else:
                if kind == "close_tag":
                    in_php = False
                yield Token(TokenKind.OTHER, match.group())
                pos = match.end()

    def _heredoc_end(self, source: str, start: int, label: str) -> int:
        """Find the end of a heredoc/nowdoc body, including its closing label."""
        closing = re.compile(
            r"^[ \t]*" + re.escape(label) + r"(?!" + _IDENT_CHAR + r")",
            re.MULTILINE,
        )
        match = closing.search(source, start)
        return match.end() if match else len(source)

    def _quoted_end(self, source: str, start: int) -> int:
        """Find the end of a quoted string starting at start (unterminated runs to the end)."""
        quote = source[start]
        pos = start + 1
        end = len(source)

        while pos < end:
            char = source[pos]
            if char == "\\":
                pos += 2
            elif char == quote:
                return pos + 1
            elif quote != "'" and char == "{" and source.startswith("$", pos + 1):
                pos = self._braces_end(source, pos + 1)
            else:
                pos += 1
        return end

    def _braces_end(self, source: str, start: int) -> int:
        """Skip a {$...} interpolation, which may contain nested strings."""
        depth = 1
        pos = start
        end = len(source)

        while pos < end:
            char = source[pos]
            if char in "\"'`":
                pos = self._quoted_end(source, pos)
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return pos + 1
            pos += 1
        return end
