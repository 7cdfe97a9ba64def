# pharbuild/strip.py
"""
Whitespace and comment stripping that keeps line numbers intact.

Comments become as many newlines as they spanned, whitespace runs are
collapsed and leading indentation is dropped. Every other token is
copied unchanged, so line numbers in stack traces still point at the
right place in the original file.
"""

import re

from .lexer import Lexer, TokenKind

# Byte-transparent codec for archive contents
SOURCE_ENCODING = "latin-1"

_NEWLINE = re.compile(r"\r\n|\r|\n")
_WIDE_SPACE = re.compile(r"[ \t]+")
_INDENT = re.compile(r"\n +")


def strip_whitespace(source: str, lexer: Lexer) -> str:
    """
    Remove comments and redundant whitespace from source text.

    Args:
        source: Source text
        lexer: Lexer for the source language (NullLexer leaves it untouched)

    Returns:
        Stripped source with the same number of lines
    """
    output = []
    for token in lexer.tokenize(source):
        if token.kind is TokenKind.COMMENT:
            output.append("\n" * len(_NEWLINE.findall(token.text)))
        elif token.kind is TokenKind.WHITESPACE:
            # reduce wide spaces
            whitespace = _WIDE_SPACE.sub(" ", token.text)
            # normalize newlines to \n
            whitespace = _NEWLINE.sub("\n", whitespace)
            # trim leading spaces
            whitespace = _INDENT.sub("\n", whitespace)
            output.append(whitespace)
        else:
            output.append(token.text)

    return "".join(output)


def strip_source(content: bytes, lexer: Lexer) -> bytes:
    """Strip raw file content, preserving every byte outside comments and whitespace."""
    text = content.decode(SOURCE_ENCODING)
    return strip_whitespace(text, lexer).encode(SOURCE_ENCODING)
