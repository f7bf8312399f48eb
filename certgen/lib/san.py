"""Subject alternative name list construction."""

import ipaddress
import socket
from collections.abc import Callable, Sequence

import netifaces

from .logging_config import LOGGER
from .models import Mode, SubjectAltNameSet

LOOPBACK_ADDRESS = "127.0.0.1"


def split_fqdn(fqdn: str) -> tuple[str, str]:
    """Split ``host.example.com`` into (``host``, ``example.com``)."""
    host, _, domain = fqdn.partition(".")
    return host, domain


def local_identity(wildcard: bool = False) -> str:
    """Return the local host's name for use when no names are given.

    Non-wildcard modes use the fully-qualified name; wildcard mode uses its
    domain part. Both fall back to the bare hostname when no domain resolves.
    """
    hostname = socket.gethostname()
    fqdn = socket.getfqdn()
    _, domain = split_fqdn(fqdn)
    if not domain:
        LOGGER.debug("No domain resolvable for %s, using bare hostname", hostname)
        return hostname
    return domain if wildcard else fqdn


def local_addresses() -> list[str]:
    """Return addresses of all local interfaces, IPv4 first, link-local skipped."""
    addresses: list[str] = []
    for family in (netifaces.AF_INET, netifaces.AF_INET6):
        for interface in netifaces.interfaces():
            for entry in netifaces.ifaddresses(interface).get(family, []):
                # IPv6 scoped addresses carry a %interface suffix
                raw = entry.get("addr", "").split("%", 1)[0]
                try:
                    address = ipaddress.ip_address(raw)
                except ValueError:
                    continue
                if address.is_link_local:
                    continue
                if str(address) not in addresses:
                    addresses.append(str(address))
    return addresses


def build_san_list(
    mode: Mode,
    names: Sequence[str],
    include_ip: bool = False,
    identity_lookup: Callable[[bool], str] | None = None,
    address_lookup: Callable[[], list[str]] | None = None,
) -> tuple[str, SubjectAltNameSet]:
    """Derive the common name and ordered SAN set for a request.

    Wildcard mode adds each domain and ``*.domain``. Other modes add each
    FQDN, its domain part and its host part. The first name given becomes
    the common name. Identical entries are dropped, first occurrence wins.

    Args:
        mode: Generation mode
        names: Requested domains or FQDNs, may be empty
        include_ip: Also add every local interface address and 127.0.0.1,
            each as both a DNS and an IP entry
        identity_lookup: Returns the local identity, given the wildcard flag
            (defaults to local_identity)
        address_lookup: Returns local interface addresses (defaults to
            local_addresses)

    Returns:
        Tuple of (common_name, SubjectAltNameSet)
    """
    wildcard = mode is Mode.WILDCARD
    if not names:
        names = [(identity_lookup or local_identity)(wildcard)]

    sans = SubjectAltNameSet()
    for name in names:
        if wildcard:
            sans.add_dns(name)
            sans.add_dns(f"*.{name}")
            continue

        host, domain = split_fqdn(name)
        sans.add_dns(name)
        if domain:
            sans.add_dns(domain)
        if host:
            sans.add_dns(host)

    if include_ip:
        for address in [*(address_lookup or local_addresses)(), LOOPBACK_ADDRESS]:
            sans.add_dns(address)
            sans.add_ip(address)

    return names[0], sans
