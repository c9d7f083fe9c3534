"""anonreg CLI — register anonymous identities into registry lists.

Usage:
    python -m anonreg.cli add-item --list-id list-A --entry 0x00Ea... --signature out/signature.json
    python -m anonreg.cli resume-add --hash 0x9c1f... --list-id list-A --entry 0x00Ea...
    python -m anonreg.cli commit-hash --tag 123 456 --entry 0x00Ea...
    python -m anonreg.cli validate-bundle --signature out/signature.json

Settings not given on the command line come from ANONREG_* environment
variables (a .env file is honoured), then from the answers remembered on
the previous run, then from built-in defaults. Private keys are only read
from the environment.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from anonreg.config import RegistrationConfig
from anonreg.models.registration import FailureKind
from anonreg.persistence.defaults_store import DEFAULT_STORE_PATH, DefaultsStore
from anonreg.service import (
    LedgerFactory,
    RegistrationService,
    ServiceResult,
    web3_ledger_factory,
)


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def _exit_code(result: ServiceResult) -> int:
    if result.success:
        return EXIT_OK
    if result.data.get("failure_kind", FailureKind.VALIDATION_FAILED.value) == (
        FailureKind.VALIDATION_FAILED.value
    ):
        return EXIT_INVALID
    return EXIT_FAILED


def _print_failure(result: ServiceResult) -> None:
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)


def _make_service(
    args: argparse.Namespace, ledger_factory: LedgerFactory
) -> RegistrationService:
    defaults = None if args.no_remember else DefaultsStore(args.defaults_file)
    remembered = defaults.values() if defaults is not None else {}
    config = RegistrationConfig.from_env(args.env_file, remembered=remembered)
    config = config.with_overrides(
        provider_url=getattr(args, "provider", None),
        contract_address=getattr(args, "contract", None),
        list_id=getattr(args, "list_id", None),
        entry_address=getattr(args, "entry", None),
        sender_address=getattr(args, "sender", None),
        signature_path=getattr(args, "signature", None),
        abi_path=getattr(args, "abi", None),
        gas_limit=getattr(args, "gas", None),
        receipt_timeout=getattr(args, "receipt_timeout", None),
    )
    return RegistrationService(config, ledger_factory=ledger_factory, defaults=defaults)


def cmd_add_item(args: argparse.Namespace, ledger_factory: LedgerFactory) -> int:
    service = _make_service(args, ledger_factory)
    result = service.register_from_file()
    data = result.data
    if result.success:
        print(
            f'Successfully added anonymous ID "{data["entry"]}" to list '
            f'{data["list_id"]} (commit hash {data["commit_hash"]})'
        )
        return EXIT_OK
    _print_failure(result)
    if data.get("failure_kind") == FailureKind.ADD_FAILED.value and data.get("commit_tx"):
        print(
            f"To retry the reveal only: anonreg resume-add --hash {data['commit_hash']}",
            file=sys.stderr,
        )
    return _exit_code(result)


def cmd_resume_add(args: argparse.Namespace, ledger_factory: LedgerFactory) -> int:
    service = _make_service(args, ledger_factory)
    result = service.resume_add_from_file(args.hash)
    if result.success:
        data = result.data
        print(
            f'Successfully added anonymous ID "{data["entry"]}" to list '
            f'{data["list_id"]} (commit hash {data["commit_hash"]})'
        )
        return EXIT_OK
    _print_failure(result)
    return _exit_code(result)


def cmd_commit_hash(args: argparse.Namespace, ledger_factory: LedgerFactory) -> int:
    service = _make_service(args, ledger_factory)
    result = service.commit_hash(args.tag, args.entry or service.config.entry_address)
    if result.success:
        print(result.data["commit_hash"])
        return EXIT_OK
    _print_failure(result)
    return EXIT_INVALID


def cmd_validate_bundle(args: argparse.Namespace, ledger_factory: LedgerFactory) -> int:
    service = _make_service(args, ledger_factory)
    result = service.validate_bundle()
    if result.success:
        print(json.dumps(result.data, indent=2))
        return EXIT_OK
    _print_failure(result)
    return EXIT_INVALID


def _add_registry_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--provider", help="Web3 provider endpoint (http(s):// or ws(s)://)")
    p.add_argument("--contract", help="AnonymousIdentityRegistry contract address")
    p.add_argument("--list-id", dest="list_id", help="Target list ID")
    p.add_argument("--entry", help="Anonymous identity address")
    p.add_argument("--sender", help="Sender address paying for both transactions")
    p.add_argument("--signature", help="Path to signature.json")
    p.add_argument("--abi", help="Contract artifact or ABI JSON (default: built-in)")
    p.add_argument("--gas", type=int, help="Gas limit for the add transaction")
    p.add_argument(
        "--receipt-timeout", dest="receipt_timeout", type=float,
        help="Seconds to wait for each transaction receipt",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anonreg",
        description="Anonymous Identity Registry — commit-reveal list registration",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Environment file with ANONREG_* settings (default: .env)",
    )
    parser.add_argument(
        "--defaults-file",
        type=Path,
        default=DEFAULT_STORE_PATH,
        help=f"Remembered answers file (default: {DEFAULT_STORE_PATH})",
    )
    parser.add_argument(
        "--no-remember", action="store_true",
        help="Neither read nor write remembered answers",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    sub = parser.add_subparsers(dest="command")

    # add-item
    p_add = sub.add_parser("add-item", help="Commit and reveal an anonymous ID")
    _add_registry_options(p_add)

    # resume-add
    p_resume = sub.add_parser(
        "resume-add", help="Reveal an anonymous ID whose hash is already committed",
    )
    _add_registry_options(p_resume)
    p_resume.add_argument("--hash", required=True, help="Previously committed hash")

    # commit-hash
    p_hash = sub.add_parser("commit-hash", help="Compute a commit hash offline")
    p_hash.add_argument("--tag", nargs=2, required=True, metavar=("T0", "T1"))
    p_hash.add_argument("--entry", help="Anonymous identity address")

    # validate-bundle
    p_val = sub.add_parser("validate-bundle", help="Check a signature.json file")
    p_val.add_argument("--signature", help="Path to signature.json")

    return parser


def main(
    argv: list[str] | None = None,
    ledger_factory: Optional[LedgerFactory] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "add-item": cmd_add_item,
        "resume-add": cmd_resume_add,
        "commit-hash": cmd_commit_hash,
        "validate-bundle": cmd_validate_bundle,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return EXIT_FAILED

    try:
        return handler(args, ledger_factory or web3_ledger_factory)
    except ValueError as exc:
        # Bad numeric settings or a corrupt defaults file
        print(f"Failed: {exc}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    raise SystemExit(main())
