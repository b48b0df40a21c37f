"""CLI entrypoints for SAML 2.0 service provider operational tasks."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from saml2sp.config import get_settings
from saml2sp.core.binding import Saml2MessageBinding
from saml2sp.core.codec import decode_message
from saml2sp.core.registration import registrations_from_settings


def _run_decode_response(payload: str, binding: Saml2MessageBinding, max_size: int | None) -> int:
    """Decode a captured SAMLResponse parameter and print the XML."""
    result = decode_message(payload.strip(), binding=binding, max_inflated_size=max_size)
    if result.error is not None:
        print(
            json.dumps(
                {
                    "error": result.error.kind.value,
                    "cause": type(result.error.cause).__name__,
                    "message": str(result.error.cause),
                }
            ),
            file=sys.stderr,
        )
        return 1
    print(result.value)
    return 0


def _run_list_registrations() -> int:
    """Print configured relying party registrations without key material."""
    registrations = registrations_from_settings(get_settings())
    print(
        json.dumps(
            [
                {
                    "registration_id": registration.registration_id,
                    "entity_id": registration.entity_id,
                    "assertion_consumer_service_location": (
                        registration.assertion_consumer_service_location
                    ),
                    "asserting_party_entity_id": registration.asserting_party.entity_id,
                    "verification_certificates": len(
                        registration.asserting_party.verification_x509_certificates
                    ),
                }
                for registration in registrations
            ]
        )
    )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build command-line parser for supported operational commands."""
    parser = argparse.ArgumentParser(prog="python -m saml2sp.cli")
    subcommands = parser.add_subparsers(dest="command", required=True)

    decode_parser = subcommands.add_parser("decode-response")
    decode_parser.add_argument(
        "payload",
        nargs="?",
        default=None,
        help="Base64 SAMLResponse value; read from stdin when omitted.",
    )
    decode_parser.add_argument(
        "--binding",
        choices=("redirect", "post"),
        default="post",
        help="Binding the payload arrived over; redirect payloads are inflated.",
    )
    decode_parser.add_argument(
        "--max-inflated-bytes",
        type=int,
        default=None,
        help="Optional cap on inflated Redirect-binding output.",
    )

    subcommands.add_parser("list-registrations")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run CLI command."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "decode-response":
        payload = args.payload if args.payload is not None else sys.stdin.read()
        binding = Saml2MessageBinding[args.binding.upper()]
        return _run_decode_response(payload, binding, args.max_inflated_bytes)
    if args.command == "list-registrations":
        return _run_list_registrations()
    parser.error("Unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
