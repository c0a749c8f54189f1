# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import pytest
from aws_rds_signer._http import (
    URI,
    Field,
    Fields,
    HostType,
    HTTPResponse,
    tuples_to_fields,
)
from aws_rds_signer.exceptions import ParseError
from aws_rds_signer.utils import async_list


def test_uri_basic() -> None:
    uri = URI(
        host="mydb.example.com",
        port=5432,
        path="/",
        query="Action=connect",
    )
    assert uri.scheme == "https"
    assert uri.netloc == "mydb.example.com:5432"
    assert uri.host_type is HostType.DOMAIN
    assert uri.build() == "https://mydb.example.com:5432/?Action=connect"


def test_uri_without_port() -> None:
    uri = URI(scheme="http", host="169.254.169.254", path="/latest/api/token")
    assert uri.netloc == "169.254.169.254"
    assert uri.host_type is HostType.IPv4
    assert uri.build() == "http://169.254.169.254/latest/api/token"


@pytest.mark.parametrize(
    "host, netloc",
    [
        ("::1", "[::1]:80"),
        ("fd00:ec2::254", "[fd00:ec2::254]:80"),
        ("2001:db8::ff00:42:8329", "[2001:db8::ff00:42:8329]:80"),
    ],
)
def test_uri_ipv6_netloc(host: str, netloc: str) -> None:
    uri = URI(host=host, port=80)
    assert uri.host_type is HostType.IPv6
    assert uri.netloc == netloc


@pytest.mark.parametrize(
    "host",
    ["", "has space", "with/slash", "user@", "256.0.0.1", "[::1]", "a:b"],
)
def test_uri_invalid_host(host: str) -> None:
    with pytest.raises(ParseError):
        URI(host=host)


@pytest.mark.parametrize("port", [-1, 65536, 100000])
def test_uri_invalid_port(port: int) -> None:
    with pytest.raises(ParseError):
        URI(host="example.com", port=port)


@pytest.mark.parametrize("port", [0, 443, 65535])
def test_uri_valid_port(port: int) -> None:
    assert URI(host="example.com", port=port).port == port


def test_uri_is_immutable() -> None:
    uri = URI(host="example.com")
    with pytest.raises(AttributeError):
        uri.host = "other.com"  # type: ignore


def test_field() -> None:
    field = Field(name="Accept", values=["text/plain"])
    field.add("application/json")
    assert field.as_tuples() == [
        ("Accept", "text/plain"),
        ("Accept", "application/json"),
    ]
    assert field == Field(name="Accept", values=["text/plain", "application/json"])


def test_fields_case_insensitive() -> None:
    fields = Fields([Field(name="X-Aws-Ec2-Metadata-Token", values=["abc"])])
    assert "x-aws-ec2-metadata-token" in fields
    assert fields["X-AWS-EC2-METADATA-TOKEN"].values == ["abc"]
    assert fields.get("missing") is None
    assert [fld.name for fld in fields] == ["X-Aws-Ec2-Metadata-Token"]


def test_fields_rejects_duplicate_initial_names() -> None:
    with pytest.raises(ValueError):
        Fields([Field(name="host", values=["a"]), Field(name="Host", values=["b"])])


def test_tuples_to_fields_merges_repeated_names() -> None:
    fields = tuples_to_fields(
        [("Set-Cookie", "a=1"), ("set-cookie", "b=2"), ("X", "y")]
    )
    assert fields["set-cookie"].values == ["a=1", "b=2"]
    assert [fld.name for fld in fields] == ["Set-Cookie", "X"]


async def test_response_consume_body() -> None:
    response = HTTPResponse(
        status=200, fields=Fields(), body=async_list([b"ab", b"", b"cd"])
    )
    assert await response.consume_body() == b"abcd"
