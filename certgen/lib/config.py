"""Certificate generation configuration and subject naming."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid

from .errors import BadDHBits

DH_BITS_ENV = "CERTGEN_DH_BITS"


def parse_dh_bits(raw: str, source: str) -> int:
    """Convert a DH parameter size given as text.

    Args:
        raw: Text value
        source: Where the value came from, for the error message

    Raises:
        BadDHBits: If raw is not an integer
    """
    try:
        return int(raw.strip())
    except ValueError as e:
        raise BadDHBits(f"{source} must be an integer, got {raw!r}") from e


@dataclass
class CertgenConfig:
    """Well-known locations and defaults for certificate generation."""

    certs_dir: Path = Path("/etc/ssl/certs")
    private_dir: Path = Path("/etc/ssl/private")
    default_basename: str = "ssl-cert-snakeoil"
    dh_params_name: str = "dhparams.pem"
    template_path: Path = Path("/usr/share/ssl-cert/ssleay.cnf")
    default_dh_bits: int = 2048
    default_expiry: str = "10y"
    rehash_command: tuple[str, ...] = field(default=("openssl", "rehash"))

    @property
    def default_cert_path(self) -> Path:
        return self.certs_dir / f"{self.default_basename}.pem"

    @property
    def default_key_path(self) -> Path:
        return self.private_dir / f"{self.default_basename}.key"

    @property
    def default_csr_path(self) -> Path:
        return self.private_dir / f"{self.default_basename}.csr"

    @property
    def combined_pem_path(self) -> Path:
        return self.private_dir / f"{self.default_basename}-combined.pem"

    @property
    def dh_params_path(self) -> Path:
        return self.private_dir / self.dh_params_name

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "CertgenConfig":
        """Build config from defaults, applying the DH size environment override.

        Args:
            environ: Environment mapping (defaults to os.environ)
            **overrides: Field values taking precedence over defaults

        Returns:
            CertgenConfig instance

        Raises:
            BadDHBits: If CERTGEN_DH_BITS is set but not an integer
        """
        environ = os.environ if environ is None else environ
        config = cls(**overrides)

        raw_bits = environ.get(DH_BITS_ENV, "").strip()
        if raw_bits:
            config = replace(config, default_dh_bits=parse_dh_bits(raw_bits, DH_BITS_ENV))

        return config


# Template keys (long and short OpenSSL spellings) -> X.509 name attribute OIDs
_DN_FIELDS: dict[str, x509.ObjectIdentifier] = {
    "countryName": oid.NameOID.COUNTRY_NAME,
    "C": oid.NameOID.COUNTRY_NAME,
    "stateOrProvinceName": oid.NameOID.STATE_OR_PROVINCE_NAME,
    "ST": oid.NameOID.STATE_OR_PROVINCE_NAME,
    "localityName": oid.NameOID.LOCALITY_NAME,
    "L": oid.NameOID.LOCALITY_NAME,
    "organizationName": oid.NameOID.ORGANIZATION_NAME,
    "O": oid.NameOID.ORGANIZATION_NAME,
    "organizationalUnitName": oid.NameOID.ORGANIZATIONAL_UNIT_NAME,
    "OU": oid.NameOID.ORGANIZATIONAL_UNIT_NAME,
    "commonName": oid.NameOID.COMMON_NAME,
    "CN": oid.NameOID.COMMON_NAME,
    "emailAddress": oid.NameOID.EMAIL_ADDRESS,
}


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name as read from a template section."""

    common_name: str
    attributes: list[tuple[x509.ObjectIdentifier, str]] = field(default_factory=list)

    @classmethod
    def from_section(cls, section: Mapping[str, str]) -> "DistinguishedName":
        """Build DN from an OpenSSL distinguished-name section.

        Prompt-style keys (``commonName_default``) are accepted; limits such
        as ``commonName_max`` are ignored.

        Raises:
            ValueError: If the section carries no common name
        """
        attributes: list[tuple[x509.ObjectIdentifier, str]] = []
        common_name = ""
        for key, value in section.items():
            name = key.removesuffix("_default")
            attr_oid = _DN_FIELDS.get(name)
            if attr_oid is None or not value:
                continue
            if attr_oid == oid.NameOID.COMMON_NAME:
                common_name = value
                continue
            attributes.append((attr_oid, value))

        if not common_name:
            raise ValueError("distinguished name has no commonName")

        return cls(common_name=common_name, attributes=attributes)

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation."""
        return x509.Name(
            [x509.NameAttribute(attr_oid, value) for attr_oid, value in self.attributes]
            + [x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name)]
        )
