# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
# pyright: reportPrivateUsage=false
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from aws_rds_signer._http import URI, Field, Fields, HTTPRequest
from aws_rds_signer._private.http.aiohttp_client import (
    AIOHTTPClient,
    AIOHTTPClientConfig,
)
from aws_rds_signer.exceptions import HTTPClientError


def _session(status: int = 200, body: bytes = b"ok") -> MagicMock:
    aiohttp_resp = MagicMock()
    aiohttp_resp.status = status
    aiohttp_resp.reason = "OK"
    aiohttp_resp.headers = {"Content-Type": "text/plain"}
    aiohttp_resp.read = AsyncMock(return_value=body)

    session = MagicMock()
    session.request.return_value.__aenter__.return_value = aiohttp_resp
    return session


def _request() -> HTTPRequest:
    return HTTPRequest(
        method="PUT",
        destination=URI(
            scheme="http",
            host="169.254.169.254",
            port=80,
            path="/latest/api/token",
            query="a=1&b=two",
        ),
        fields=Fields(
            [Field(name="x-aws-ec2-metadata-token-ttl-seconds", values=["5"])]
        ),
    )


async def test_send() -> None:
    session = _session(body=b"token")
    client = AIOHTTPClient(
        client_config=AIOHTTPClientConfig(timeout=2.0), _session=session
    )

    response = await client.send(_request())

    assert response.status == 200
    assert response.reason == "OK"
    assert response.fields["content-type"].values == ["text/plain"]
    assert await response.consume_body() == b"token"

    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "PUT"
    assert kwargs["url"] == "http://169.254.169.254:80/latest/api/token"
    assert kwargs["params"] == [("a", "1"), ("b", "two")]
    assert kwargs["headers"] == [("x-aws-ec2-metadata-token-ttl-seconds", "5")]
    assert kwargs["timeout"].total == 2.0


@pytest.mark.parametrize(
    "error", [aiohttp.ClientConnectionError("refused"), TimeoutError()]
)
async def test_send_wraps_errors(error: Exception) -> None:
    session = MagicMock()
    session.request.side_effect = error
    client = AIOHTTPClient(_session=session)

    with pytest.raises(HTTPClientError) as exc_info:
        await client.send(_request())
    assert exc_info.value.__cause__ is error
