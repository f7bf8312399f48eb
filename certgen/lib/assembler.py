"""Artifact writing, permissions, bundling and trust-store refresh."""

import os
import subprocess
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

from .cert_utils import create_combined_bundle
from .errors import ArtifactError
from .logging_config import LOGGER
from .models import GenerationPlan, GenerationResult

CERT_MODE = 0o644
KEY_MODE = 0o400
DH_PARAMS_MODE = 0o400
CSR_MODE = 0o600
BUNDLE_MODE = 0o400


def write_artifact(path: Path, data: bytes, mode: int) -> Path:
    """Atomically write data to path with the given permission bits.

    Data goes to a temporary file in the target directory which is renamed
    over the target. The temporary file is removed if the write is
    interrupted.

    Raises:
        ArtifactError: If the file cannot be written
    """
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    except OSError as e:
        raise ArtifactError(f"cannot create {path}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException as e:
        Path(tmp_name).unlink(missing_ok=True)
        if isinstance(e, OSError):
            raise ArtifactError(f"cannot write {path}: {e}") from e
        raise

    LOGGER.debug("Wrote %s (mode %o)", path, mode)
    return path


class ArtifactAssembler:
    """Writes artifacts and finalizes them per the permission policy."""

    def __init__(
        self,
        rehash_command: Sequence[str] = ("openssl", "rehash"),
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        """Initialize assembler.

        Args:
            rehash_command: Trust-store refresh command, the certificate
                directory is appended as last argument
            runner: subprocess.run compatible callable
        """
        self.rehash_command = tuple(rehash_command)
        self.runner = runner

    def store_certificate(self, path: Path, data: bytes) -> Path:
        return write_artifact(path, data, CERT_MODE)

    def store_key(self, path: Path, data: bytes) -> Path:
        return write_artifact(path, data, KEY_MODE)

    def store_csr(self, path: Path, data: bytes) -> Path:
        return write_artifact(path, data, CSR_MODE)

    def store_dh_params(self, path: Path, data: bytes) -> Path:
        return write_artifact(path, data, DH_PARAMS_MODE)

    def apply_permissions(self, plan: GenerationPlan) -> None:
        """Set permission bits on every plan artifact present on disk."""
        policy = [
            (plan.paths.cert_path, CERT_MODE),
            (plan.paths.key_path, KEY_MODE),
            (plan.paths.csr_path, CSR_MODE),
            (plan.paths.dh_params_path if plan.build_bundle else None, DH_PARAMS_MODE),
        ]
        for path, mode in policy:
            if path is None or not path.exists():
                continue
            try:
                os.chmod(path, mode)
            except OSError as e:
                raise ArtifactError(f"cannot set permissions on {path}: {e}") from e

    def build_bundle(self, plan: GenerationPlan) -> Path:
        """Concatenate certificate, key and DH parameters into the combined bundle.

        Raises:
            ArtifactError: If an input is unreadable or the bundle cannot be written
        """
        bundle_path = plan.paths.combined_pem_path
        if bundle_path is None:
            raise ArtifactError(f"no combined bundle location for {plan.mode.value} mode")

        try:
            cert_pem = plan.paths.cert_path.read_bytes()
            key_pem = plan.paths.key_path.read_bytes()
            dh_pem = plan.paths.dh_params_path.read_bytes()
        except OSError as e:
            raise ArtifactError(f"cannot read bundle input: {e}") from e

        write_artifact(bundle_path, create_combined_bundle(cert_pem, key_pem, dh_pem), BUNDLE_MODE)
        LOGGER.info("Combined bundle written to %s", bundle_path)
        return bundle_path

    def rehash(self, certs_dir: Path) -> None:
        """Refresh the trust store hash links for a certificate directory.

        Raises:
            ArtifactError: If the command is missing or exits non-zero
        """
        command = [*self.rehash_command, str(certs_dir)]
        LOGGER.debug("Running %s", " ".join(command))
        try:
            completed = self.runner(command, capture_output=True, text=True, check=False)
        except OSError as e:
            raise ArtifactError(f"trust store refresh failed: {e}") from e

        if completed.returncode != 0:
            diagnostic = (completed.stderr or completed.stdout or "").strip()
            raise ArtifactError(
                f"trust store refresh exited with {completed.returncode}: {diagnostic}"
            )

    def finalize(self, plan: GenerationPlan, result: GenerationResult) -> GenerationResult:
        """Apply permissions, build the combined bundle and refresh the trust store.

        Args:
            plan: Generation plan
            result: Result collecting what this run wrote

        Returns:
            The updated result
        """
        self.apply_permissions(plan)

        if plan.build_bundle:
            result.bundle_path = self.build_bundle(plan)
            result.written.append(result.bundle_path)

        if plan.rehash:
            self.rehash(plan.paths.cert_path.parent)
            result.rehashed = True

        return result
