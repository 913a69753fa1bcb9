# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from schemaledger.adapters.json_file import read_binding_file, write_binding_file
from schemaledger.app import load_model_summary, reconcile_model_file
from schemaledger.config import (
    ConfigurationError,
    configure_logging,
    get_generator_config,
)
from schemaledger.domain.errors import SchemaLedgerError, UidRequestError
from schemaledger.domain.reconciliation import UidFound, UidNotFound

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from schemaledger.config import GeneratorConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep a persisted schema model in sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Merge a binding file into the model file")
    sync.add_argument(
        "--binding",
        type=Path,
        required=True,
        help="JSON binding file describing entities, properties and relations",
    )
    sync.add_argument(
        "--model",
        type=Path,
        help=(
            "Model file to reconcile "
            "(defaults to SCHEMALEDGER_MODEL_FILE or ./objectbox-model.json)"
        ),
    )
    sync.add_argument(
        "--output",
        type=Path,
        help="Write the binding annotated with resolved ids to this file",
    )
    sync.add_argument(
        "--prune-entities",
        action="store_true",
        default=None,
        help="Remove model entities that are no longer part of the binding",
    )
    sync.add_argument("--log-level", type=str, help="Logging level (default: INFO)")

    show = subparsers.add_parser("show", help="Print a summary of the model file")
    show.add_argument("--model", type=Path, help="Model file to read")
    show.add_argument("--log-level", type=str, help="Logging level (default: INFO)")

    return parser.parse_args(list(argv))


def _resolve_config(args: argparse.Namespace) -> GeneratorConfig:
    config = get_generator_config()
    return config.with_overrides(
        model_path=args.model,
        log_level=args.log_level,
        prune_entities=getattr(args, "prune_entities", None),
    )


def describe_failure(exc: SchemaLedgerError) -> str:
    """Turn a reconciliation failure into an operator-facing remediation message."""

    if not isinstance(exc, UidRequestError):
        return str(exc)

    where = f"{exc.entity}.{exc.name}" if exc.entity else exc.name
    match exc.outcome:
        case UidFound(existing_uid=existing, suggested_uid=suggested):
            lines = [
                f"uid annotation value must not be empty on {exc.kind} {where}:",
                f"    [rename] apply the current UID {existing}",
            ]
            if suggested is not None:
                lines.append(f"    [change/reset] apply a new UID {suggested}")
            return "\n".join(lines)
        case UidNotFound():
            return (
                f"uid annotation value must not be empty on an unknown {exc.kind} {where}; "
                "remove the uid request to create it as new"
            )


def _run_sync(args: argparse.Namespace, config: GeneratorConfig) -> None:
    binding = read_binding_file(args.binding)
    report = reconcile_model_file(
        binding,
        config.model_path,
        prune_entities=config.prune_entities,
    )
    for change in report.changes:
        log.info("%s %s %s (%s)", change.action, change.kind, change.path, change.identity)
    if args.output is not None:
        write_binding_file(args.output, binding)
        log.info("Wrote annotated binding to %s", args.output)


def _run_show(config: GeneratorConfig) -> None:
    if not config.model_path.exists():
        raise ConfigurationError(f"Model file {config.model_path} does not exist")
    summary = load_model_summary(config.model_path)
    print(json.dumps(summary, indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        config = _resolve_config(parsed_args)
        configure_logging(level=config.log_level_number)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        if parsed_args.command == "sync":
            _run_sync(parsed_args, config)
        elif parsed_args.command == "show":
            _run_show(config)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except SchemaLedgerError as exc:
        print(f"Error: {describe_failure(exc)}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
