"""Reconcile request flags into a single immutable generation plan."""

import os
from pathlib import Path

from .config import CertgenConfig
from .errors import BadDHBits, InsufficientPrivileges, InvalidExpiry
from .logging_config import LOGGER
from .models import (
    DH_BIT_SIZES,
    MAX_EXPIRY_DAYS,
    MIN_EXPIRY_DAYS,
    WEAK_DH_BITS,
    ArtifactPaths,
    GenerationPlan,
    GenerationRequest,
    Mode,
    SubjectAltNameSet,
)
from .san import build_san_list
from .template import parse_template, read_template, render_template

CERT_EXTENSIONS = (".crt", ".pem")
FIXED_LOCATION_MODES = (Mode.DEFAULT, Mode.DH_PARAMS_ONLY)


def validate_dh_bits(bits: int) -> list[str]:
    """Check DH size, returning advisory warnings for weak but accepted sizes.

    Raises:
        BadDHBits: If bits is not 1024, 2048 or 4096
    """
    if bits not in DH_BIT_SIZES:
        allowed = ", ".join(str(b) for b in DH_BIT_SIZES)
        raise BadDHBits(f"DH parameter size must be one of {allowed}, got {bits}")
    if bits == WEAK_DH_BITS:
        return [f"{bits}-bit DH parameters are weak, prefer 2048 or more"]
    return []


def normalize_output_path(path: Path) -> Path:
    """Append ``.crt`` unless the path already has a certificate extension."""
    if path.suffix.lower() in CERT_EXTENSIONS:
        return path
    return path.with_name(path.name + ".crt")


def resolve_paths(
    request: GenerationRequest, config: CertgenConfig, common_name: str
) -> ArtifactPaths:
    """Resolve artifact locations for the request mode.

    Default and DH-params-only use the fixed well-known locations. Other
    modes derive paths from the explicit override, or from the common name
    under the well-known directories.
    """
    if request.mode in FIXED_LOCATION_MODES:
        emit_csr = request.emit_csr and request.mode is Mode.DEFAULT
        return ArtifactPaths(
            cert_path=config.default_cert_path,
            key_path=config.default_key_path,
            dh_params_path=config.dh_params_path,
            csr_path=config.default_csr_path if emit_csr else None,
            combined_pem_path=config.combined_pem_path,
        )

    if request.output_override is not None:
        cert_path = normalize_output_path(request.output_override)
        key_path = cert_path.with_suffix(".key")
        csr_path = cert_path.with_suffix(".csr")
    else:
        cert_path = config.certs_dir / f"{common_name}.crt"
        key_path = config.private_dir / f"{common_name}.key"
        csr_path = config.private_dir / f"{common_name}.csr"

    return ArtifactPaths(
        cert_path=cert_path,
        key_path=key_path,
        dh_params_path=config.dh_params_path,
        csr_path=csr_path if request.emit_csr else None,
    )


def check_privileges(targets: list[Path]) -> None:
    """Ensure every target's directory exists and is writable.

    Raises:
        InsufficientPrivileges: For the first directory that is not
    """
    for directory in dict.fromkeys(path.parent for path in targets):
        if not directory.is_dir():
            raise InsufficientPrivileges(f"target directory does not exist: {directory}")
        if not os.access(directory, os.W_OK | os.X_OK):
            raise InsufficientPrivileges(f"no write permission on {directory}")


def resolve_plan(request: GenerationRequest, config: CertgenConfig) -> GenerationPlan:
    """Build the generation plan for a request.

    Validation happens here, before anything is written: DH size, expiry
    range, template presence and shape, target directory permissions.

    Args:
        request: Generation request from the command line
        config: Well-known locations and defaults

    Returns:
        Immutable GenerationPlan

    Raises:
        BadDHBits: If dh_bits is unsupported
        InvalidExpiry: If expiry_days is out of range
        BadTemplate: If the template is missing, unreadable or malformed
        InsufficientPrivileges: If a target directory is not writable
    """
    warnings = validate_dh_bits(request.dh_bits)

    if not MIN_EXPIRY_DAYS <= request.expiry_days <= MAX_EXPIRY_DAYS:
        raise InvalidExpiry(f"{request.expiry_days}d", "day count out of range")

    dh_params_only = request.mode is Mode.DH_PARAMS_ONLY
    if request.mode in FIXED_LOCATION_MODES and request.output_override is not None:
        warnings.append(f"--out {request.output_override} ignored in {request.mode.value} mode")

    if dh_params_only:
        # DH regeneration never touches the certificate, so no template is needed
        common_name, sans, template = "", SubjectAltNameSet(), ""
    else:
        common_name, sans = build_san_list(request.mode, request.names, request.include_ip)
        LOGGER.debug(
            "Subject alternative names for %s: DNS [%s] IP [%s]",
            common_name,
            ", ".join(sans.dns_names()),
            ", ".join(sans.ip_addresses()),
        )
        template = render_template(read_template(request.template_path), common_name, sans)
        parse_template(template)

    paths = resolve_paths(request, config, common_name)

    issue_certificate = not dh_params_only
    build_bundle = request.mode in FIXED_LOCATION_MODES
    generate_dh_params = dh_params_only or (
        request.mode is Mode.DEFAULT
        and (request.force_overwrite or not paths.dh_params_path.exists())
    )

    targets: list[Path] = []
    if issue_certificate:
        targets += [paths.cert_path, paths.key_path]
    if paths.csr_path is not None:
        targets.append(paths.csr_path)
    if generate_dh_params:
        targets.append(paths.dh_params_path)
    if build_bundle and paths.combined_pem_path is not None:
        targets.append(paths.combined_pem_path)
    check_privileges(targets)

    for warning in warnings:
        LOGGER.warning(warning)

    return GenerationPlan(
        mode=request.mode,
        common_name=common_name,
        sans=sans,
        paths=paths,
        template=template,
        expiry_days=request.expiry_days,
        dh_bits=request.dh_bits,
        force_overwrite=request.force_overwrite,
        issue_certificate=issue_certificate,
        generate_dh_params=generate_dh_params,
        build_bundle=build_bundle,
        rehash=issue_certificate and (build_bundle or request.output_override is None),
        warnings=tuple(warnings),
    )
