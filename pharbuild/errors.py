# pharbuild/errors.py
"""
Exceptions raised while configuring or compiling an archive.

Each error also derives from the closest built-in exception, so callers
that only know about FileNotFoundError or ValueError still catch them.
"""


class PharBuildError(Exception):
    """Base class for all pharbuild errors."""


class EnvironmentDisabledError(PharBuildError, RuntimeError):
    """Archive creation is disabled by host configuration."""


class NotFoundError(PharBuildError, FileNotFoundError):
    """A registered path does not resolve to an existing file or directory."""


class InvalidModeError(PharBuildError, ValueError):
    """An index file was registered for an unknown runtime mode."""


class EmptyIndexError(PharBuildError, RuntimeError):
    """Compile was requested without any index files."""


class ManifestError(PharBuildError, ValueError):
    """A build manifest is malformed."""


class OutsideRootError(PharBuildError, ValueError):
    """A registered path points outside the project root."""


class SignatureError(PharBuildError, ValueError):
    """An archive signature is unknown or cannot be produced."""
