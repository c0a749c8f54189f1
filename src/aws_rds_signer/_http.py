# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections import OrderedDict
from collections.abc import AsyncIterable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from urllib.parse import urlunparse

from ._private import abnf
from .exceptions import ParseError


class HostType(Enum):
    """Enumeration of possible host types."""

    IPv6 = "IPv6"
    """Host is an IPv6 address."""

    IPv4 = "IPv4"
    """Host is an IPv4 address."""

    DOMAIN = "DOMAIN"
    """Host type is a domain name."""

    UNKNOWN = "UNKNOWN"
    """Host type is unknown."""


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location for a request.

    The host and port are validated on construction; an invalid value raises
    :py:class:`ParseError`.
    """

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI."""

    query: str | None = None
    """Query component of the URI as string."""

    def __post_init__(self) -> None:
        """Validate host and port components."""
        if self.host_type is HostType.UNKNOWN:
            raise ParseError(f"Invalid host: {self.host!r}")
        if self.host_type is HostType.IPv4 and not abnf.valid_ipv4_host_address(
            self.host
        ):
            raise ParseError(f"Invalid IPv4 address: {self.host!r}")
        if self.port is not None and not abnf.is_port_valid(self.port):
            raise ParseError(f"Invalid port: {self.port}")

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{host}:{port}``.

        ``port`` is only included if set. Square brackets are added around the host if
        it is an IPv6 address per :rfc:`3986#section-3.2.2`.
        """
        return self._netloc

    # cached_property does NOT behave like property, it actually allows for setting.
    # Therefore we need a layer of indirection.
    @cached_property
    def _netloc(self) -> str:
        if self.host_type is HostType.IPv6:
            host = f"[{self.host}]"
        else:
            host = self.host

        if self.port is not None:
            return f"{host}:{self.port}"
        return host

    @cached_property
    def host_type(self) -> HostType:
        """Return the type of host."""
        if abnf.IPv6_MATCHER.match(f"[{self.host}]"):
            return HostType.IPv6
        if abnf.IPv4_MATCHER.match(self.host):
            return HostType.IPv4
        if abnf.HOST_MATCHER.match(self.host):
            return HostType.DOMAIN
        return HostType.UNKNOWN

    def build(self) -> str:
        """Construct URI string representation.

        Returns a string of the form ``{scheme}://{host}:{port}{path}?{query}``
        """
        components = (
            self.scheme,
            self.netloc,
            self.path or "",
            "",  # params
            self.query,
            "",  # fragment
        )
        return urlunparse(components)


class Field:
    """A name-value pair representing a single field in an HTTP Request or Response.

    All field names are case insensitive and case-variance must be treated as
    equivalent.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def as_tuples(self) -> list[tuple[str, str]]:
        """Get list of ``name``, ``value`` tuples where each tuple represents one
        value."""
        return [(self.name, val) for val in self.values]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, value={self.values!r})"


class Fields:
    def __init__(self, initial: Iterable[Field] | None = None):
        """Collection of header entries mapped by case-insensitive name.

        :param initial: Initial list of ``Field`` objects.
        """
        self.entries: OrderedDict[str, Field] = OrderedDict()
        for fld in initial or ():
            if fld.name.lower() in self.entries:
                raise ValueError(
                    "Field names of the initial list of fields must be unique. "
                    f"{fld.name} appears more than once."
                )
            self.set_field(fld)

    def set_field(self, field: Field) -> None:
        """Set or override the entry for ``field.name``."""
        self.entries[field.name.lower()] = field

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self.entries.get(key.lower(), default)

    def __getitem__(self, name: str) -> Field:
        return self.entries[name.lower()]

    def __contains__(self, key: str) -> bool:
        return key.lower() in self.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"Fields({self.entries})"


def tuples_to_fields(tuples: Iterable[tuple[str, str]]) -> Fields:
    """Build a ``Fields`` object from name-value tuples, merging repeated names."""
    fields = Fields()
    for name, value in tuples:
        if name in fields:
            fields[name].add(value)
        else:
            fields.set_field(Field(name=name, values=[value]))
    return fields


@dataclass(kw_only=True)
class HTTPRequest:
    """A minimal HTTP request."""

    destination: URI
    method: str
    fields: Fields = field(default_factory=Fields)
    body: bytes = b""


@dataclass(kw_only=True)
class HTTPResponse:
    """Basic implementation of :py:class:`.interfaces.http.HTTPResponse`."""

    status: int
    """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""

    fields: Fields
    """HTTP header fields."""

    body: AsyncIterable[bytes]
    """The response payload as iterable of chunks of bytes."""

    reason: str | None = None
    """Optional string provided by the server explaining the status."""

    async def consume_body(self) -> bytes:
        """Iterate over response body and return as bytes."""
        body = b""
        async for chunk in self.body:
            body += chunk
        return body
