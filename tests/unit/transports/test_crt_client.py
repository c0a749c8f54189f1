# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
# pyright: reportPrivateUsage=false
from unittest.mock import AsyncMock, Mock

import aws_rds_signer
import pytest
from aws_rds_signer._http import URI, Field, Fields, HTTPRequest
from aws_rds_signer._private.http.crt import AWSCRTHTTPClient
from aws_rds_signer.exceptions import HTTPClientError


def test_client_marshal_request() -> None:
    client = AWSCRTHTTPClient()
    request = HTTPRequest(
        method="GET",
        destination=URI(
            host="example.com", path="/path", query="key1=value1&key2=value2"
        ),
        fields=Fields([Field(name="x-aws-ec2-metadata-token", values=["abc"])]),
    )
    crt_request = client._marshal_request(request)
    assert crt_request.headers.get("host") == "example.com"
    assert crt_request.headers.get("accept") == "*/*"
    assert crt_request.headers.get("x-aws-ec2-metadata-token") == "abc"
    assert crt_request.method == "GET"
    assert crt_request.path == "/path?key1=value1&key2=value2"


@pytest.mark.parametrize(
    "host,expected",
    [
        ("example.com", "example.com:8443"),
        ("2001:db8::1", "[2001:db8::1]:8443"),
    ],
)
def test_port_included_in_host_header(host: str, expected: str) -> None:
    client = AWSCRTHTTPClient()
    request = HTTPRequest(
        method="GET",
        destination=URI(host=host, path="/path", port=8443),
    )
    crt_request = client._marshal_request(request)
    assert crt_request.headers.get("host") == expected


async def test_unsupported_scheme() -> None:
    client = AWSCRTHTTPClient()
    with pytest.raises(HTTPClientError, match="ftp"):
        await client._build_new_connection(URI(scheme="ftp", host="example.com"))


async def test_send_reads_body_and_closes_connection() -> None:
    stream = Mock()
    stream.get_response_status_code = AsyncMock(return_value=200)
    stream.get_response_headers = AsyncMock(return_value=[("Content-Length", "4")])
    stream.get_next_response_chunk = AsyncMock(side_effect=[b"to", b"ken", b""])

    connection = Mock()
    connection.request.return_value = stream
    connection.close = AsyncMock()

    client = AWSCRTHTTPClient()
    client._build_new_connection = AsyncMock(return_value=connection)
    response = await client.send(
        HTTPRequest(method="GET", destination=URI(scheme="http", host="localhost"))
    )

    assert response.status == 200
    assert response.fields["content-length"].values == ["4"]
    assert await response.consume_body() == b"token"
    connection.close.assert_awaited_once()


def test_client_is_exported() -> None:
    assert aws_rds_signer.AWSCRTHTTPClient is AWSCRTHTTPClient
