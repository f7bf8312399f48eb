"""Crypto backend interface, in-process implementation and invoker."""

from typing import Protocol

from cryptography.exceptions import UnsupportedAlgorithm

from .cert_utils import (
    deserialize_private_key,
    generate_private_key,
    serialize_certificate,
    serialize_csr,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .dh_groups import GROUPS, group_parameters, serialize_dh_parameters
from .errors import BackendError, BadTemplate
from .logging_config import LOGGER
from .models import BackendResult
from .template import parse_template


class CryptoBackend(Protocol):
    """Capability set the generator needs from a crypto implementation.

    Implementations raise BackendError with a diagnostic on failure.
    """

    def issue_certificate(self, template: str, days: int) -> tuple[bytes, bytes]:
        """Return (certificate_pem, private_key_pem) for a self-signed certificate."""
        ...

    def issue_csr(self, template: str, key_pem: bytes) -> bytes:
        """Return a PEM CSR signed with the given private key."""
        ...

    def generate_dh_params(self, bits: int) -> bytes:
        """Return PEM DH parameters of a named group for the bit size."""
        ...


class CryptographyBackend:
    """In-process backend built on the cryptography package."""

    def issue_certificate(self, template: str, days: int) -> tuple[bytes, bytes]:
        try:
            settings = parse_template(template)
            private_key = generate_private_key(settings.key_bits)
            cert = CertificateBuilder.build_self_signed(
                subject_dn=settings.subject,
                private_key=private_key,
                validity_days=days,
                sans=settings.sans,
            )
        except (BadTemplate, ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise BackendError(str(e)) from e

        return serialize_certificate(cert), serialize_private_key(private_key)

    def issue_csr(self, template: str, key_pem: bytes) -> bytes:
        try:
            settings = parse_template(template)
            private_key = deserialize_private_key(key_pem)
            csr = CertificateBuilder.build_csr(
                subject_dn=settings.subject,
                private_key=private_key,
                sans=settings.sans,
            )
        except (BadTemplate, ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise BackendError(str(e)) from e

        return serialize_csr(csr)

    def generate_dh_params(self, bits: int) -> bytes:
        if bits not in GROUPS:
            raise BackendError(f"no named DH group for {bits} bits")
        try:
            pem = serialize_dh_parameters(group_parameters(bits))
        except ValueError as e:
            raise BackendError(str(e)) from e

        LOGGER.debug("Using named DH group %s", GROUPS[bits].name)
        return pem


class CryptoInvoker:
    """Runs backend operations, turning backend errors into failed results.

    Operations are synchronous and never retried.
    """

    def __init__(self, backend: CryptoBackend) -> None:
        self.backend = backend

    def issue_certificate(self, template: str, days: int) -> BackendResult:
        LOGGER.debug("Issuing self-signed certificate valid for %d days", days)
        try:
            cert_pem, key_pem = self.backend.issue_certificate(template, days)
        except BackendError as e:
            return BackendResult.failure(str(e))
        return BackendResult.success(cert_pem, key_pem=key_pem)

    def issue_csr(self, template: str, key_pem: bytes) -> BackendResult:
        LOGGER.debug("Issuing certificate signing request")
        try:
            csr_pem = self.backend.issue_csr(template, key_pem)
        except BackendError as e:
            return BackendResult.failure(str(e))
        return BackendResult.success(csr_pem)

    def generate_dh_params(self, bits: int) -> BackendResult:
        LOGGER.debug("Generating %d-bit DH parameters", bits)
        try:
            pem = self.backend.generate_dh_params(bits)
        except BackendError as e:
            return BackendResult.failure(str(e))
        return BackendResult.success(pem)
