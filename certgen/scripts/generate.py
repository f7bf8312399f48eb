#!/usr/bin/env python3
"""Generate a self-signed certificate, key, CSR and DH parameters."""

import argparse
import signal
import sys
from pathlib import Path

from certgen.lib.assembler import ArtifactAssembler
from certgen.lib.config import DH_BITS_ENV, CertgenConfig, parse_dh_bits
from certgen.lib.errors import CertgenError
from certgen.lib.expiry import resolve_expiry
from certgen.lib.generator import CertGenerator
from certgen.lib.logging_config import LOGGER, set_verbose
from certgen.lib.models import GenerationRequest, Mode
from certgen.lib.plan import resolve_plan


class GracefulTermination(Exception):
    """Raised from the SIGTERM handler to unwind and clean up."""


def _on_sigterm(signum, frame):
    raise GracefulTermination(signum)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a self-signed certificate and private key"
    )
    parser.add_argument(
        "names",
        nargs="*",
        metavar="NAME",
        help="Domains or FQDNs (default: local host identity)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Certificate output path, .crt appended if it has no certificate extension",
    )
    parser.add_argument(
        "--default",
        action="store_true",
        help="Write the default snakeoil certificate, key and combined bundle",
    )
    parser.add_argument(
        "--expiry",
        default=None,
        help="Validity as <n>y, <n>m or <n>d (default: 10y)",
    )
    parser.add_argument(
        "--dh-bits",
        default=None,
        help=f"DH parameter size: 1024, 2048 or 4096 (default: ${DH_BITS_ENV} or 2048)",
    )
    parser.add_argument(
        "--dh-params-only",
        action="store_true",
        help="Only regenerate DH parameters and the combined bundle",
    )
    parser.add_argument("--csr", action="store_true", help="Also write a CSR")
    parser.add_argument(
        "--wildcard",
        action="store_true",
        help="Treat NAMEs as domains and add *.domain entries",
    )
    parser.add_argument(
        "--template",
        type=Path,
        default=None,
        help="OpenSSL configuration template",
    )
    parser.add_argument(
        "--ip",
        action="store_true",
        help="Add local interface addresses and 127.0.0.1",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging and summary dump")
    parser.add_argument("--force", action="store_true", help="Overwrite existing files")
    return parser


def resolve_mode(args: argparse.Namespace) -> Mode:
    """Pick the mode: --dh-params-only, then --default, then --wildcard, else custom."""
    if args.dh_params_only:
        if args.csr:
            LOGGER.warning("--csr ignored with --dh-params-only")
        return Mode.DH_PARAMS_ONLY
    if args.default:
        if args.wildcard:
            LOGGER.warning("--wildcard ignored with --default")
        return Mode.DEFAULT
    if args.wildcard:
        return Mode.WILDCARD
    return Mode.CUSTOM


def build_request(args: argparse.Namespace, config: CertgenConfig) -> GenerationRequest:
    """Validate parsed arguments into a GenerationRequest.

    Raises:
        InvalidExpiry: If --expiry cannot be resolved
        BadDHBits: If --dh-bits is not an integer
    """
    mode = resolve_mode(args)
    return GenerationRequest(
        mode=mode,
        names=tuple(args.names),
        include_ip=args.ip,
        emit_csr=args.csr and mode is not Mode.DH_PARAMS_ONLY,
        force_overwrite=args.force,
        expiry_days=resolve_expiry(args.expiry or config.default_expiry),
        dh_bits=(
            parse_dh_bits(args.dh_bits, "--dh-bits")
            if args.dh_bits is not None
            else config.default_dh_bits
        ),
        template_path=args.template or config.template_path,
        output_override=args.out,
    )


def _log_summary(summary: dict[str, object]) -> None:
    certificate = summary.get("certificate")
    if isinstance(certificate, dict):
        LOGGER.info("Certificate:")
        LOGGER.info("  Subject: %s", certificate["subject"])
        LOGGER.info("  Issuer: %s", certificate["issuer"])
        LOGGER.info("  Serial: %s", certificate["serialNumber"])
        LOGGER.info("  Not before: %s", certificate["notBefore"])
        LOGGER.info("  Not after: %s", certificate["notAfter"])
        for entry in certificate["subjectAltNames"]:
            LOGGER.info("  SAN: %s", entry)
        LOGGER.info("  SHA-256: %s", certificate["sha256Fingerprint"])

    csr = summary.get("csr")
    if isinstance(csr, dict):
        LOGGER.info("CSR: %s (%s)", csr["path"], csr["subject"])

    dh_params = summary.get("dhParams")
    if isinstance(dh_params, dict):
        LOGGER.info("DH parameters: %s (%s bits)", dh_params["path"], dh_params["bits"])


def main() -> int:
    """Generate certificate artifacts.

    Returns:
        Exit code (0 for success or SIGTERM, 1 for failure)
    """
    args = build_parser().parse_args()
    set_verbose(args.verbose)
    previous_handler = signal.signal(signal.SIGTERM, _on_sigterm)

    try:
        config = CertgenConfig.from_env()
        request = build_request(args, config)
        plan = resolve_plan(request, config)

        generator = CertGenerator(assembler=ArtifactAssembler(config.rehash_command))
        result = generator.generate(plan)

        LOGGER.info("Generated %d artifact(s):", len(result.written))
        for path in result.written:
            LOGGER.info("  %s", path)

        if args.verbose:
            _log_summary(generator.describe(plan))
        return 0

    except GracefulTermination:
        LOGGER.warning("Terminated, temporary files removed")
        return 0
    except KeyboardInterrupt:
        LOGGER.error("Interrupted, temporary files removed")
        return 1
    except CertgenError as e:
        LOGGER.error("Certificate generation failed: %s", e)
        return 1
    finally:
        signal.signal(signal.SIGTERM, previous_handler or signal.SIG_DFL)
        set_verbose(False)


if __name__ == "__main__":
    sys.exit(main())
