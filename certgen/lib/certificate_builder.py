"""Certificate builder for self-signed X.509 certificates and CSRs."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cert_utils import generate_serial_number
from .config import DistinguishedName
from .models import SubjectAltNameSet


class CertificateBuilder:
    """Builds self-signed server certificates and signing requests."""

    @staticmethod
    def build_self_signed(
        subject_dn: DistinguishedName,
        private_key: RSAPrivateKey,
        validity_days: int,
        sans: SubjectAltNameSet,
    ) -> x509.Certificate:
        """Build self-signed end-entity certificate.

        Args:
            subject_dn: Distinguished name for subject and issuer
            private_key: RSA private key for signing
            validity_days: Certificate validity period in days
            sans: Subject alternative names, omitted from the certificate if empty

        Returns:
            Self-signed X.509 certificate, SHA-256 signature
        """
        subject = subject_dn.to_x509_name()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(private_key.public_key())
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
        )
        if len(sans):
            builder = builder.add_extension(sans.to_x509(), critical=False)

        return builder.sign(private_key, hashes.SHA256())

    @staticmethod
    def build_csr(
        subject_dn: DistinguishedName,
        private_key: RSAPrivateKey,
        sans: SubjectAltNameSet,
    ) -> x509.CertificateSigningRequest:
        """Build certificate signing request for an existing key.

        Args:
            subject_dn: Distinguished name for the request subject
            private_key: RSA private key the request proves possession of
            sans: Subject alternative names, requested as an extension if non-empty

        Returns:
            CSR signed with SHA-256
        """
        builder = x509.CertificateSigningRequestBuilder().subject_name(subject_dn.to_x509_name())
        if len(sans):
            builder = builder.add_extension(sans.to_x509(), critical=False)

        return builder.sign(private_key, hashes.SHA256())
