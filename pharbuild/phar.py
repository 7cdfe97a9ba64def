# pharbuild/phar.py
"""
PHAR archive writer.

Writes archives in PHP's native phar format:

    stub                 PHP code ending with __HALT_COMPILER(); ?>\\r\\n
    manifest             alias, flags and one record per entry
    entry data           contents of each entry, in manifest order
    signature            digest (or RSA signature), flags, "GBMB"

All integers are little-endian. Entries are kept in memory and the file
is only written when flushed; the flush goes to a temporary file that is
renamed over the target, so readers never see a partial archive.
"""

import hashlib
import logging
import os
import struct
import tempfile
import time
import zlib
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .errors import SignatureError
from .stub import HALT_COMPILER

logger = logging.getLogger(__name__)

API_VERSION = b"\x11\x10"  # 1.1.1
HDR_SIGNATURE = 0x00010000
ENT_PERM_DEF_FILE = 0o666
SIGNATURE_MAGIC = b"GBMB"
STUB_TERMINATOR = b" ?>\r\n"
DEFAULT_STUB = b"<?php " + HALT_COMPILER.encode()


class SignatureAlgorithm(Enum):
    """Signature types supported by the phar format."""
    MD5 = 0x0001
    SHA1 = 0x0002
    SHA256 = 0x0003
    SHA512 = 0x0004
    OPENSSL = 0x0010

    @classmethod
    def parse(cls, value: Union["SignatureAlgorithm", str]) -> "SignatureAlgorithm":
        """Look up an algorithm by name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            names = ", ".join(a.name for a in cls)
            raise SignatureError(
                f"Unknown signature algorithm {value!r}, must be one of: {names}"
            ) from None


_DIGESTS = {
    SignatureAlgorithm.MD5: "md5",
    SignatureAlgorithm.SHA1: "sha1",
    SignatureAlgorithm.SHA256: "sha256",
    SignatureAlgorithm.SHA512: "sha512",
}


def _u32(value: int) -> bytes:
    return struct.pack("<I", value)


class PharWriter:
    """
    Builds a phar archive at a given path.

    Usage:
        with PharWriter("app.phar", "app.phar") as phar:
            phar.set_signature_algorithm(SignatureAlgorithm.SHA1)
            phar.start_buffering()
            phar.add_from_string("index.php", b"<?php echo 1;")
            phar.set_stub(stub)
            phar.stop_buffering()
    """

    def __init__(self, path: Union[Path, str], alias: Optional[str] = None,
                 timestamp: Optional[int] = None):
        self.path = Path(path)
        self.alias = alias if alias is not None else self.path.name
        self.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self._entries: Dict[str, bytes] = {}
        self._stub = DEFAULT_STUB + STUB_TERMINATOR
        self._algorithm = SignatureAlgorithm.SHA1
        self._private_key: Optional[bytes] = None
        self._buffering = False
        self._dirty = False
        self._signature: Optional[bytes] = None

    def __enter__(self) -> "PharWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def entries(self) -> List[str]:
        """Names of all entries, in archive order."""
        return list(self._entries)

    def set_signature_algorithm(self, algorithm: Union[SignatureAlgorithm, str],
                                private_key: Optional[bytes] = None):
        """
        Choose how the archive is signed.

        OPENSSL requires a PEM-encoded RSA private key.
        """
        algorithm = SignatureAlgorithm.parse(algorithm)
        if algorithm is SignatureAlgorithm.OPENSSL and not private_key:
            raise SignatureError("OPENSSL signatures require a private key")

        # takes effect with the next write
        self._algorithm = algorithm
        self._private_key = private_key
        self._dirty = True

    def start_buffering(self):
        """Stage changes in memory until stop_buffering()."""
        self._buffering = True

    def is_buffering(self) -> bool:
        return self._buffering

    def stop_buffering(self):
        """Write all staged changes to disk."""
        self._buffering = False
        self._flush()

    def add_from_string(self, name: str, content: Union[bytes, str]):
        """Add (or replace) an entry."""
        if isinstance(content, str):
            content = content.encode("utf-8")

        name = name.replace("\\", "/").lstrip("/")
        if not name:
            raise ValueError("Entry name must not be empty")

        self._entries[name] = content
        logger.debug(f"Staged entry: {name} ({len(content)} bytes)")
        self._changed()

    def set_stub(self, stub: Union[bytes, str]):
        """
        Set the bootstrap stub.

        The stub is cut after __HALT_COMPILER(); and terminated the way
        PHP expects.
        """
        if isinstance(stub, str):
            stub = stub.encode("utf-8")

        halt = HALT_COMPILER.encode()
        pos = stub.lower().find(halt.lower())
        if pos == -1:
            raise ValueError(f"Illegal stub, it must contain {HALT_COMPILER}")

        self._stub = stub[:pos + len(halt)] + STUB_TERMINATOR
        self._changed()

    def get_signature(self) -> Optional[Dict[str, str]]:
        """Signature of the last written archive, or None before the first flush."""
        if self._signature is None:
            return None
        return {
            "hash": self._signature.hex().upper(),
            "hash_type": self._algorithm.name,
        }

    def close(self):
        """Release the writer; staged changes that were never flushed are discarded."""
        if self._dirty:
            logger.debug(f"Discarding unwritten changes to {self.path}")
        self._entries.clear()
        self._buffering = False
        self._dirty = False

    def _changed(self):
        self._dirty = True
        if not self._buffering:
            self._flush()

    def _flush(self):
        """Write the archive atomically via a temporary file in the target directory."""
        data = self._build()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        if self._algorithm is SignatureAlgorithm.OPENSSL:
            self._write_public_key()

        self._dirty = False
        logger.debug(f"Wrote {self.path} ({len(data)} bytes, {len(self._entries)} entries)")

    def _build(self) -> bytes:
        """Serialize stub, manifest, contents and signature."""
        alias = self.alias.encode("utf-8")

        records = []
        for name, content in self._entries.items():
            encoded_name = name.encode("utf-8")
            records.append(b"".join([
                _u32(len(encoded_name)),
                encoded_name,
                _u32(len(content)),
                _u32(self.timestamp),
                _u32(len(content)),
                _u32(zlib.crc32(content) & 0xFFFFFFFF),
                _u32(ENT_PERM_DEF_FILE),
                _u32(0),  # entry metadata
            ]))

        manifest = b"".join([
            _u32(len(self._entries)),
            API_VERSION,
            _u32(HDR_SIGNATURE),
            _u32(len(alias)),
            alias,
            _u32(0),  # archive metadata
        ] + records)

        body = b"".join(
            [self._stub, _u32(len(manifest)), manifest]
            + list(self._entries.values())
        )
        return body + self._sign(body)

    def _sign(self, body: bytes) -> bytes:
        """Build the signature trailer for body."""
        flags = _u32(self._algorithm.value)

        if self._algorithm is SignatureAlgorithm.OPENSSL:
            key = serialization.load_pem_private_key(self._private_key, password=None)
            signature = key.sign(body, padding.PKCS1v15(), hashes.SHA1())
            self._signature = signature
            return signature + _u32(len(signature)) + flags + SIGNATURE_MAGIC

        signature = hashlib.new(_DIGESTS[self._algorithm], body).digest()
        self._signature = signature
        return signature + flags + SIGNATURE_MAGIC

    def _write_public_key(self):
        """Publish the public key next to the archive, where PHP looks for it."""
        key = serialization.load_pem_private_key(self._private_key, password=None)
        public_pem = key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        pubkey_path = self.path.with_name(self.path.name + ".pubkey")
        pubkey_path.write_bytes(public_pem)
