# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Print an IAM authentication token for an RDS database.
"""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Callable, Mapping, Sequence

from ._private.http.aiohttp_client import AIOHTTPClient
from ._private.http.crt import AWSCRTHTTPClient
from .auth_token import (
    EXPIRES_IN_ENV_VAR,
    HOST_ENV_VAR,
    PORT_ENV_VAR,
    REGION_ENV_VAR,
    USER_ENV_VAR,
    SignerBuilder,
)
from .exceptions import RDSSignerError
from .interfaces.http import HTTPClient

_HTTP_CLIENTS: dict[str, Callable[[], HTTPClient]] = {
    "aiohttp": AIOHTTPClient,
    "crt": AWSCRTHTTPClient,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aws-rds-signer",
        description=(
            "Generate an IAM authentication token for an RDS database. Options that "
            "aren't given are read from the DB_* environment variables."
        ),
    )
    parser.add_argument("--host", help=f"Database endpoint [{HOST_ENV_VAR}]")
    parser.add_argument("--port", type=int, help=f"Database port [{PORT_ENV_VAR}]")
    parser.add_argument("--user", help=f"Database user [{USER_ENV_VAR}]")
    parser.add_argument("--region", help=f"Region to sign for [{REGION_ENV_VAR}]")
    parser.add_argument(
        "--expires-in",
        type=int,
        help=f"Token lifetime in seconds [{EXPIRES_IN_ENV_VAR}]",
    )
    parser.add_argument(
        "--http-client",
        choices=tuple(_HTTP_CLIENTS),
        default="aiohttp",
        help="Transport used to reach the instance metadata service",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Log resolution steps to stderr"
    )
    return parser


def _merge_environment(
    args: argparse.Namespace, environ: Mapping[str, str]
) -> dict[str, str]:
    merged = dict(environ)
    overrides = {
        HOST_ENV_VAR: args.host,
        PORT_ENV_VAR: args.port,
        USER_ENV_VAR: args.user,
        REGION_ENV_VAR: args.region,
        EXPIRES_IN_ENV_VAR: args.expires_in,
    }
    for name, value in overrides.items():
        if value is not None:
            merged[name] = str(value)
    return merged


def main(
    argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None
) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    environ = os.environ if environ is None else environ
    try:
        builder = SignerBuilder.from_environment(_merge_environment(args, environ))
        http_client = _HTTP_CLIENTS[args.http_client]()
        signer = builder.http_client(http_client).build()
        token = asyncio.run(signer.fetch_token())
    except (RDSSignerError, ValueError) as e:
        print(f"aws-rds-signer: error: {e}", file=sys.stderr)
        return 1

    print(token)
    return 0
