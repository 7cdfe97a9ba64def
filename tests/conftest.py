# tests/conftest.py
"""Shared fixtures: sample project trees and a phar reader for inspecting output."""

import hashlib
import struct
import tempfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import pytest

from pharbuild.config import Settings

HALT = b"__HALT_COMPILER(); ?>\r\n"
DIGESTS = {1: "md5", 2: "sha1", 3: "sha256", 4: "sha512"}


@dataclass
class PharContents:
    """Decoded phar archive (test helper only)."""
    stub: bytes
    alias: str
    api_version: bytes
    flags: int
    entries: Dict[str, bytes] = field(default_factory=dict)
    timestamps: Dict[str, int] = field(default_factory=dict)
    signature_flags: int = 0
    signature: bytes = b""
    signed_body: bytes = b""


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def read_phar_file(path: Path) -> PharContents:
    """Parse a phar archive written by PharWriter."""
    data = Path(path).read_bytes()
    assert data[-4:] == b"GBMB"

    signature_flags = _u32(data, len(data) - 8)
    if signature_flags == 0x10:
        sig_len = _u32(data, len(data) - 12)
        body_end = len(data) - 12 - sig_len
        signature = data[body_end:len(data) - 12]
    else:
        digest_size = hashlib.new(DIGESTS[signature_flags]).digest_size
        body_end = len(data) - 8 - digest_size
        signature = data[body_end:len(data) - 8]

    stub_end = data.index(HALT) + len(HALT)
    manifest_len = _u32(data, stub_end)
    pos = stub_end + 4
    manifest_end = pos + manifest_len

    count = _u32(data, pos)
    api_version = data[pos + 4:pos + 6]
    flags = _u32(data, pos + 6)
    alias_len = _u32(data, pos + 10)
    pos += 14
    alias = data[pos:pos + alias_len].decode("utf-8")
    pos += alias_len
    pos += 4 + _u32(data, pos)  # archive metadata

    records = []
    for _ in range(count):
        name_len = _u32(data, pos)
        name = data[pos + 4:pos + 4 + name_len].decode("utf-8")
        pos += 4 + name_len
        size, timestamp, stored, crc, _perm, meta_len = struct.unpack_from("<6I", data, pos)
        pos += 24 + meta_len
        records.append((name, size, timestamp, stored, crc))

    assert pos == manifest_end

    contents = PharContents(
        stub=data[:stub_end],
        alias=alias,
        api_version=api_version,
        flags=flags,
        signature_flags=signature_flags,
        signature=signature,
        signed_body=data[:body_end],
    )
    for name, size, timestamp, stored, crc in records:
        content = data[pos:pos + stored]
        pos += stored
        assert len(content) == size
        assert zlib.crc32(content) & 0xFFFFFFFF == crc
        contents.entries[name] = content
        contents.timestamps[name] = timestamp

    assert pos == body_end
    return contents


@pytest.fixture
def read_phar():
    """Return a function that parses a phar archive."""
    return read_phar_file


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings():
    """Settings independent of the test environment."""
    return Settings(readonly=False, lexer="php", signature="SHA1", timestamp=1600000000)


@pytest.fixture
def project(temp_dir):
    """
    Create a sample project.

        project/
            index.php         (with shebang)
            web.php
            dir/abc.php
            dir/def.txt
            dir/sub/ghi.php
    """
    root = temp_dir / "project"
    (root / "dir" / "sub").mkdir(parents=True)

    (root / "index.php").write_text(
        "#!/usr/bin/env php\n"
        "<?php\n"
        "// entry point\n"
        "require __DIR__.'/dir/abc.php';\n"
        "echo '#!/usr/bin/env php';\n"
    )
    (root / "web.php").write_text("<?php echo 'web';\n")
    (root / "dir" / "abc.php").write_text(
        "<?php\n"
        "/**\n"
        " * Says hello.\n"
        " */\n"
        "function hello()\n"
        "{\n"
        "    return 'hello   world'; // greeting\n"
        "}\n"
    )
    (root / "dir" / "def.txt").write_text("plain   text\n    indented\n")
    (root / "dir" / "sub" / "ghi.php").write_text("<?php\n\n    $x = 1;\n")
    return root
