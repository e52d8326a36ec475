"""pgdb command line tool.

Usage:
    pgdb deploy [--name NAME] [--size GB] [--version MAJOR] [--server ALIAS] [--json]
    pgdb status [--server ALIAS] [--json]
    pgdb destroy NAME [--keep-data] [--server ALIAS] [--json]
    pgdb config set server.<alias> <url>

The bearer token is read from PGDB_TOKEN.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from pgdb_agent.cli.output import print_deploy, print_destroy, print_status
from pgdb_agent.cli.settings import load_settings, save_settings, validate_url
from pgdb_agent.client import ClientConfig, ClientError, PgdbClient
from pgdb_agent.core.models import DeployRequest


class CliError(Exception):
    """User-facing command failure."""


def require_token() -> str:
    token = os.environ.get("PGDB_TOKEN", "")
    if not token:
        raise CliError("PGDB_TOKEN is required in the environment")
    return token


def build_client(server: str | None, config_path: Path | None) -> PgdbClient:
    token = require_token()
    try:
        settings = load_settings(config_path)
        _, url = settings.resolve_server_url(server)
    except ValueError as exc:
        raise CliError(str(exc)) from exc
    return PgdbClient(ClientConfig(endpoint=url, token=token))


async def deploy(args: argparse.Namespace) -> None:
    request = DeployRequest(name=args.name, size_gb=args.size, version=args.version)
    async with build_client(args.server, args.config) as client:
        result = await client.deploy(request)
    print_deploy(result, args.json)


async def status(args: argparse.Namespace) -> None:
    async with build_client(args.server, args.config) as client:
        items = await client.status()
    print_status(items, args.json)


async def destroy(args: argparse.Namespace) -> None:
    async with build_client(args.server, args.config) as client:
        await client.destroy(args.name, keep_data=args.keep_data)
    print_destroy(args.name, args.json)


def config_set(args: argparse.Namespace) -> None:
    key, value = args.key, args.value
    if not key.startswith("server."):
        raise CliError("Only server.<alias> keys are supported. Example: server.default")
    alias = key[len("server."):]
    if not alias:
        raise CliError("Alias cannot be empty")
    try:
        validate_url(value)
    except ValueError as exc:
        raise CliError(str(exc)) from exc

    try:
        settings = load_settings(args.config)
    except ValueError as exc:
        raise CliError(str(exc)) from exc
    settings.servers[alias] = value
    if alias == "default":
        settings.default_server = "default"
    save_settings(settings, args.config)
    print(f"Set {key}={value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Provision ephemeral PostgreSQL databases",
        prog="pgdb",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="CLI settings file (default: ~/.config/pgdb/config.json)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy_parser = subparsers.add_parser("deploy", help="Create a database")
    deploy_parser.add_argument("--name", help="Database name (generated if omitted)")
    deploy_parser.add_argument("--size", type=int, help="Advisory size in GB")
    deploy_parser.add_argument("--version", type=int, help="PostgreSQL major version (12-17)")
    deploy_parser.add_argument("--server", help="Server alias")
    deploy_parser.add_argument("--json", action="store_true", help="Print JSON")

    status_parser = subparsers.add_parser("status", help="List databases")
    status_parser.add_argument("--server", help="Server alias")
    status_parser.add_argument("--json", action="store_true", help="Print JSON")

    destroy_parser = subparsers.add_parser("destroy", help="Destroy a database")
    destroy_parser.add_argument("name", help="Database name")
    destroy_parser.add_argument(
        "--keep-data",
        action="store_true",
        help="Keep the data volume",
    )
    destroy_parser.add_argument("--server", help="Server alias")
    destroy_parser.add_argument("--json", action="store_true", help="Print JSON")

    config_parser = subparsers.add_parser("config", help="Manage CLI settings")
    config_sub = config_parser.add_subparsers(dest="action", required=True)
    set_parser = config_sub.add_parser("set", help="Set a server alias URL")
    set_parser.add_argument("key", help="server.<alias>")
    set_parser.add_argument("value", help="Agent base URL")

    return parser


def run(argv: list[str] | None = None) -> int:
    """Execute a command, returning the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == "deploy":
            asyncio.run(deploy(args))
        elif args.command == "status":
            asyncio.run(status(args))
        elif args.command == "destroy":
            asyncio.run(destroy(args))
        elif args.command == "config":
            config_set(args)
    except (CliError, ClientError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
