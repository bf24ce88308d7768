from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

import requests

from myob_client.apis import NoNextPageError, UnexpectedResponseError
from myob_client.auth import AuthenticationError
from myob_client.client import Client, CompanyFileNotSelectedError
from myob_client.config import AppSettings, ConfigurationError
from myob_client.http import ApiHttpError, ResponseParseError
from myob_client.logging_utils import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="myob-client",
        description="Query the MYOB AccountRight API using settings from the environment.",
    )
    parser.add_argument("--log-level", default=None, help="Overrides MYOB_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("authorize-url", help="Print the OAuth2 consent URL")

    exchange = commands.add_parser("exchange-code", help="Exchange an authorization code for tokens")
    exchange.add_argument("code")

    commands.add_parser("company-files", help="List the available company files")

    list_cmd = commands.add_parser("list", help="List records of a resource kind")
    list_cmd.add_argument("kind", help="Resource kind, e.g. Customer")
    list_cmd.add_argument("--top", type=int)
    list_cmd.add_argument("--skip", type=int)
    list_cmd.add_argument("--orderby")
    list_cmd.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Equality filter; may be repeated",
    )
    list_cmd.add_argument("--all-pages", action="store_true", help="Follow NextPageLink to the end")

    find = commands.add_parser("find", help="Fetch one record by UID")
    find.add_argument("kind")
    find.add_argument("uid")

    return parser


def load_settings() -> AppSettings:
    return AppSettings.from_env()


def build_client(settings: AppSettings) -> Client:
    return Client.from_settings(settings)


def _list_params(args: argparse.Namespace) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if args.orderby:
        params["orderby"] = args.orderby
    if args.top is not None:
        params["top"] = args.top
    if args.skip is not None:
        params["skip"] = args.skip
    if args.filter:
        conditions = {}
        for raw in args.filter:
            if "=" not in raw:
                raise ValueError(f"Filter must look like FIELD=VALUE, got {raw!r}")
            field, value = raw.split("=", 1)
            conditions[field.strip()] = value
        params["filter"] = conditions
    return params


def run(args: argparse.Namespace, client: Client) -> Any:
    if args.command == "authorize-url":
        return client.authorization_url()
    if args.command == "exchange-code":
        return client.exchange_code(args.code)
    if args.command == "company-files":
        return client.company_files()
    if args.command == "list":
        api = client.model(args.kind)
        params = _list_params(args)
        return api.all_items(params) if args.all_pages else api.records(params)
    if args.command == "find":
        return client.model(args.kind).find(args.uid)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging(args.log_level)
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    configure_logging(args.log_level or settings.log_level)
    try:
        client = build_client(settings)
    except (ApiHttpError, AuthenticationError, ResponseParseError, UnexpectedResponseError, requests.RequestException) as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    try:
        result = run(args, client)
    except (
        ApiHttpError,
        AuthenticationError,
        CompanyFileNotSelectedError,
        KeyError,
        NoNextPageError,
        ResponseParseError,
        UnexpectedResponseError,
        ValueError,
        requests.RequestException,
    ) as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()

    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
