# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from itertools import chain
from typing import Final
from urllib.parse import parse_qsl, urlunparse

import aiohttp

from ..._http import URI, Field, Fields, HTTPResponse
from ...exceptions import HTTPClientError
from ...interfaces.http import HTTPClientConfiguration, HTTPRequest
from ...utils import async_list

logger: Final = logging.getLogger(__name__)


class AIOHTTPClientConfig(HTTPClientConfiguration):
    pass


class AIOHTTPClient:
    """Implementation of :py:class:`...interfaces.http.HTTPClient` using aiohttp.

    Without an injected session a new ``aiohttp.ClientSession`` is opened and closed
    around every request, since sessions must be created inside a running event
    loop.
    """

    def __init__(
        self,
        *,
        client_config: AIOHTTPClientConfig | None = None,
        _session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = client_config or AIOHTTPClientConfig()
        self._session = _session

    async def send(self, request: HTTPRequest) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        :param request: The request including destination URI, fields, payload.
        """
        if self._session is not None:
            return await self._send(self._session, request)
        async with aiohttp.ClientSession() as session:
            return await self._send(session, request)

    async def _send(
        self, session: aiohttp.ClientSession, request: HTTPRequest
    ) -> HTTPResponse:
        headers_list = list(
            chain.from_iterable(fld.as_tuples() for fld in request.fields)
        )
        timeout = aiohttp.ClientTimeout(total=self._config.timeout)
        logger.debug("Sending %s request to %s.", request.method, request.destination)
        try:
            async with session.request(
                method=request.method,
                url=self._serialize_uri_without_query(request.destination),
                params=parse_qsl(request.destination.query or ""),
                headers=headers_list,
                data=request.body,
                timeout=timeout,
            ) as resp:
                return await self._marshal_response(resp)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise HTTPClientError(
                f"{request.method} {request.destination.netloc} failed: {e!r}"
            ) from e

    def _serialize_uri_without_query(self, uri: URI) -> str:
        """Serialize all parts of the URI up to and including the path."""
        components = (uri.scheme, uri.netloc, uri.path or "", "", "", "")
        return urlunparse(components)

    async def _marshal_response(
        self, aiohttp_resp: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to an ``HTTPResponse``."""
        headers = Fields()
        for header_name, header_val in aiohttp_resp.headers.items():
            if header_name in headers:
                headers[header_name].add(header_val)
            else:
                headers.set_field(Field(name=header_name, values=[header_val]))

        return HTTPResponse(
            status=aiohttp_resp.status,
            fields=headers,
            body=async_list([await aiohttp_resp.read()]),
            reason=aiohttp_resp.reason,
        )
