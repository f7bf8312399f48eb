"""OpenSSL-style configuration template rendering and parsing."""

import configparser
import re
from dataclasses import dataclass
from pathlib import Path

from .config import DistinguishedName
from .errors import BadTemplate
from .models import SubjectAltNameSet

HOSTNAME_PLACEHOLDER = "@HostName@"
ALT_NAMES_SECTION = "alt_names"
DEFAULT_KEY_BITS = 2048

_SECTION_RE = re.compile(r"^\s*\[\s*(?P<name>[^\]]+?)\s*\]")
_GLOBAL_SECTION = "__global__"
_CONFIGPARSER_SECTION_RE = re.compile(r"\[\s*(?P<header>[^\]]+?)\s*\]")


def read_template(path: Path) -> str:
    """Read template text from disk.

    Raises:
        BadTemplate: If the file is missing or unreadable
    """
    if not path.is_file():
        raise BadTemplate(f"template not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BadTemplate(f"template not readable: {path}: {e}") from e


def render_template(text: str, common_name: str, sans: SubjectAltNameSet) -> str:
    """Substitute the common name and rewrite the ``[alt_names]`` section.

    Everything between the ``[alt_names]`` header and the next section header
    is dropped and replaced with the SAN entries. A template without the
    section is returned with only the placeholder substituted.
    """
    rendered: list[str] = []
    in_alt_names = False
    for line in text.replace(HOSTNAME_PLACEHOLDER, common_name).splitlines():
        match = _SECTION_RE.match(line)
        if match:
            in_alt_names = match.group("name") == ALT_NAMES_SECTION
            rendered.append(line)
            if in_alt_names:
                rendered.extend(sans.to_config_lines())
            continue
        if not in_alt_names:
            rendered.append(line)
    return "\n".join(rendered) + "\n"


@dataclass
class TemplateSettings:
    """Values a crypto backend needs from a rendered template."""

    subject: DistinguishedName
    sans: SubjectAltNameSet
    key_bits: int = DEFAULT_KEY_BITS


def _parse_config(text: str) -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        allow_no_value=True,
        default_section="__defaults__",
        inline_comment_prefixes=("#",),
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    parser.SECTCRE = _CONFIGPARSER_SECTION_RE
    # Indentation is not significant to OpenSSL, unlike configparser continuations
    lines = [line.strip() for line in text.splitlines()]
    # OpenSSL allows settings before the first section header
    parser.read_string("\n".join([f"[{_GLOBAL_SECTION}]", *lines]))
    return parser


def parse_template(text: str) -> TemplateSettings:
    """Extract subject, SANs and key size from rendered template text.

    Raises:
        BadTemplate: If the text cannot be parsed or has no usable subject
    """
    try:
        parser = _parse_config(text)
    except configparser.Error as e:
        raise BadTemplate(f"template cannot be parsed: {e}") from e

    dn_section = "req_distinguished_name"
    key_bits = DEFAULT_KEY_BITS
    if parser.has_section("req"):
        dn_section = parser.get("req", "distinguished_name", fallback=None) or dn_section
        bits_text = parser.get("req", "default_bits", fallback=None) or str(DEFAULT_KEY_BITS)
        try:
            key_bits = int(bits_text)
        except ValueError as e:
            raise BadTemplate(f"default_bits must be an integer, got {bits_text!r}") from e

    if not parser.has_section(dn_section):
        raise BadTemplate(f"template has no [{dn_section}] section")
    try:
        subject = DistinguishedName.from_section(dict(parser.items(dn_section)))
    except ValueError as e:
        raise BadTemplate(f"[{dn_section}]: {e}") from e

    sans = SubjectAltNameSet()
    if parser.has_section(ALT_NAMES_SECTION):
        for key, value in parser.items(ALT_NAMES_SECTION):
            if not value:
                continue
            kind = key.split(".", 1)[0].upper()
            if kind == "DNS":
                sans.add_dns(value)
            elif kind == "IP":
                sans.add_ip(value)

    return TemplateSettings(subject=subject, sans=sans, key_bits=key_bits)
