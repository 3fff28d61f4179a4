"""
Command line entry point for Impel.
"""

import argparse
import json
import sys
from typing import List, Optional
import structlog

from .config import get_config, get_db_config, setup_directories
from .contract import ContractHost, parse_account
from .database import create_backend
from .database.models import Challenge, ChallengeState
from .errors import ImpelError
from .utils.logging import setup_logging

logger = structlog.get_logger(__name__)

# Read-only commands run as this account
READER_ACCOUNT = bytes(20)


def _account(value: str) -> bytes:
    try:
        return parse_account(value)
    except ImpelError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="impel", description="Impel challenge contract")
    commands = parser.add_subparsers(dest="command", required=True)

    def with_sender(sub):
        sub.add_argument("--sender", type=_account, required=True, help="Caller account id (40 hex chars)")
        return sub

    with_sender(commands.add_parser("deploy", help="Initialize contract storage"))

    sub = with_sender(commands.add_parser("register", help="Register the caller"))
    sub.add_argument("username")

    with_sender(commands.add_parser("whoami", help="Show the caller's registration"))

    sub = commands.add_parser("user", help="Show the user registered at an address")
    sub.add_argument("address")

    sub = commands.add_parser("address", help="Derive the address of an account id")
    sub.add_argument("account", type=_account)

    sub = with_sender(commands.add_parser("pay", help="Pay GAS to join a challenge"))
    sub.add_argument("amount", type=int)
    sub.add_argument("challenge_id", type=int)

    sub = commands.add_parser("entries", help="List commitments to a challenge")
    sub.add_argument("challenge_id", type=int)

    sub = commands.add_parser("challenge", help="Show a challenge")
    sub.add_argument("challenge_id", type=int)

    sub = with_sender(commands.add_parser("create-challenge", help="Mint a challenge (owner only)"))
    sub.add_argument("--title", required=True)
    sub.add_argument("--start", type=int, required=True, help="Start time, epoch ms")
    sub.add_argument("--end", type=int, required=True, help="End time, epoch ms")
    sub.add_argument("--evaluation", type=int, required=True, help="Evaluation time, epoch ms")
    sub.add_argument("--value", type=int, required=True)

    sub = with_sender(commands.add_parser("advance", help="Advance a challenge's state (owner only)"))
    sub.add_argument("challenge_id", type=int)
    sub.add_argument("state", choices=[s.value for s in ChallengeState])

    return parser


def run_command(host: ContractHost, args: argparse.Namespace):
    """Run a parsed command against the host and return a JSON-ready result."""
    if args.command == "deploy":
        host.deploy(args.sender)
        return {"deployed": True}
    if args.command == "register":
        return host.invoke("register_user", args.sender, args.username).model_dump(by_alias=True)
    if args.command == "whoami":
        return host.invoke("retrieve_user", args.sender).model_dump(by_alias=True)
    if args.command == "user":
        return host.invoke("retrieve_user_by_address", READER_ACCOUNT, args.address).model_dump(by_alias=True)
    if args.command == "address":
        return {"address": host.invoke("to_address", READER_ACCOUNT, args.account)}
    if args.command == "pay":
        commit = host.transfer(args.sender, args.amount, ["join_challenge", args.challenge_id])
        return commit.model_dump(mode="json", by_alias=True) if commit else None
    if args.command == "entries":
        entries = host.invoke("get_subscribed_entries_for_challenge", READER_ACCOUNT, args.challenge_id)
        return [e.model_dump(mode="json", by_alias=True) for e in entries]
    if args.command == "challenge":
        challenge = host.invoke("get_challenge", READER_ACCOUNT, args.challenge_id)
        return challenge.model_dump(mode="json", by_alias=True) if challenge else None
    if args.command == "create-challenge":
        challenge = Challenge(
            title=args.title,
            start_time=args.start,
            end_time=args.end,
            evaluation_time=args.evaluation,
            value=args.value,
        )
        return {"challengeId": host.invoke("create_challenge", args.sender, challenge)}
    if args.command == "advance":
        challenge = host.invoke("advance_challenge", args.sender, args.challenge_id, ChallengeState(args.state))
        return challenge.model_dump(mode="json", by_alias=True)
    raise ValueError(f"unknown command {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = get_config()
    setup_logging(config)
    setup_directories(config)

    backend = create_backend(get_db_config())
    try:
        host = ContractHost(backend, config)
        result = run_command(host, args)
    except (ImpelError, ValueError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        backend.close()

    print(json.dumps(result, indent=2))
    return 0


def cli_main():
    """CLI entry point for console_scripts."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    cli_main()
