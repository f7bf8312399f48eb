"""Request, plan and result models for certificate generation."""

import ipaddress
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from cryptography import x509

MIN_EXPIRY_DAYS = 1
MAX_EXPIRY_DAYS = 10957
DH_BIT_SIZES = (1024, 2048, 4096)
WEAK_DH_BITS = 1024


class Mode(Enum):
    """Which artifacts an invocation produces and where they go."""

    DEFAULT = "default"
    CUSTOM = "custom"
    WILDCARD = "wildcard"
    DH_PARAMS_ONLY = "dh-params-only"


class SanKind(Enum):
    DNS = "DNS"
    IP = "IP"


@dataclass(frozen=True)
class SanEntry:
    kind: SanKind
    value: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.value}"


class SubjectAltNameSet:
    """Ordered, duplicate-free collection of DNS and IP subject alternative names.

    Insertion order is preserved and re-adding an identical entry is a no-op.
    """

    def __init__(self, entries: Iterable[SanEntry] = ()) -> None:
        self._entries: dict[SanEntry, None] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: SanEntry) -> bool:
        """Append entry unless already present. Returns True if it was added."""
        if entry in self._entries:
            return False
        self._entries[entry] = None
        return True

    def add_dns(self, name: str) -> bool:
        return self.add(SanEntry(SanKind.DNS, name))

    def add_ip(self, address: str) -> bool:
        return self.add(SanEntry(SanKind.IP, address))

    def __iter__(self) -> Iterator[SanEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: object) -> bool:
        return entry in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubjectAltNameSet):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"SubjectAltNameSet({[str(e) for e in self]})"

    def dns_names(self) -> list[str]:
        return [e.value for e in self if e.kind is SanKind.DNS]

    def ip_addresses(self) -> list[str]:
        return [e.value for e in self if e.kind is SanKind.IP]

    def to_config_lines(self) -> list[str]:
        """Serialize as OpenSSL ``[alt_names]`` lines, numbered from 1 per type."""
        counters = {kind: 0 for kind in SanKind}
        lines = []
        for entry in self:
            counters[entry.kind] += 1
            lines.append(f"{entry.kind.value}.{counters[entry.kind]} = {entry.value}")
        return lines

    def to_x509(self) -> x509.SubjectAlternativeName:
        """Convert to a cryptography SubjectAlternativeName extension value."""
        general_names: list[x509.GeneralName] = []
        for entry in self:
            if entry.kind is SanKind.IP:
                general_names.append(x509.IPAddress(ipaddress.ip_address(entry.value)))
            else:
                general_names.append(x509.DNSName(entry.value))
        return x509.SubjectAlternativeName(general_names)


@dataclass(frozen=True)
class GenerationRequest:
    """Validated command-line inputs, before path and template resolution."""

    mode: Mode
    names: tuple[str, ...] = ()
    include_ip: bool = False
    emit_csr: bool = False
    force_overwrite: bool = False
    expiry_days: int = 3650
    dh_bits: int = 2048
    template_path: Path = Path("/usr/share/ssl-cert/ssleay.cnf")
    output_override: Path | None = None


@dataclass(frozen=True)
class ArtifactPaths:
    """Resolved output locations."""

    cert_path: Path
    key_path: Path
    dh_params_path: Path
    csr_path: Path | None = None
    combined_pem_path: Path | None = None


@dataclass(frozen=True)
class GenerationPlan:
    """Immutable generation plan consumed by the guard, invoker and assembler.

    Built once by plan.resolve_plan(); nothing downstream re-reads flags.
    """

    mode: Mode
    common_name: str
    sans: SubjectAltNameSet
    paths: ArtifactPaths
    template: str
    expiry_days: int
    dh_bits: int
    force_overwrite: bool
    issue_certificate: bool
    generate_dh_params: bool
    build_bundle: bool
    rehash: bool
    warnings: tuple[str, ...] = ()

    @property
    def emit_csr(self) -> bool:
        return self.paths.csr_path is not None

    @property
    def dh_params_only(self) -> bool:
        return self.mode is Mode.DH_PARAMS_ONLY


@dataclass(frozen=True)
class BackendResult:
    """Outcome of one crypto backend operation: PEM output or a diagnostic."""

    pem: bytes | None = None
    key_pem: bytes | None = None
    diagnostic: str | None = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None

    @classmethod
    def success(cls, pem: bytes, key_pem: bytes | None = None) -> "BackendResult":
        return cls(pem=pem, key_pem=key_pem)

    @classmethod
    def failure(cls, diagnostic: str) -> "BackendResult":
        return cls(diagnostic=diagnostic or "backend reported no diagnostic")


@dataclass
class GenerationResult:
    """Result from a generation run.

    Lists every artifact written in this run, in write order.
    """

    plan: GenerationPlan
    written: list[Path] = field(default_factory=list)
    bundle_path: Path | None = None
    rehashed: bool = False
