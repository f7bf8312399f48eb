"""Error taxonomy for certificate generation.

Every error is terminal for the invocation. Validation and guard errors are
raised before any file is touched; backend and artifact errors may leave
artifacts from earlier, independent steps on disk.
"""

from collections.abc import Iterable
from pathlib import Path


class CertgenError(Exception):
    """Base class for all certificate generation failures."""


class InvalidExpiry(CertgenError):
    """Expiry duration could not be resolved to a valid day count."""

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"invalid expiry {token!r}: {reason}")


class BadTemplate(CertgenError):
    """Configuration template is missing, unreadable or malformed."""


class BadDHBits(CertgenError):
    """DH parameter size is not one of the supported sizes."""


class InsufficientPrivileges(CertgenError):
    """A target directory is missing or not writable."""


class WouldOverwrite(CertgenError):
    """Target certificate or key already exists and overwrite was not forced."""

    def __init__(self, paths: Iterable[Path]) -> None:
        self.paths = tuple(paths)
        joined = ", ".join(str(p) for p in self.paths)
        super().__init__(f"refusing to overwrite existing files (use --force): {joined}")


class MissingPrerequisite(CertgenError):
    """DH-params-only run without the certificate and key needed for the bundle."""

    def __init__(self, paths: Iterable[Path]) -> None:
        self.paths = tuple(paths)
        joined = ", ".join(str(p) for p in self.paths)
        super().__init__(f"cannot rebuild combined bundle, missing: {joined}")


class BackendError(Exception):
    """Raised by crypto backend implementations with a diagnostic message."""


class BackendFailure(CertgenError):
    """A crypto backend operation failed."""

    def __init__(self, operation: str, diagnostic: str) -> None:
        self.operation = operation
        self.diagnostic = diagnostic
        super().__init__(f"{operation} failed: {diagnostic}")


class ArtifactError(CertgenError, OSError):
    """Writing, bundling or publishing an artifact failed."""
