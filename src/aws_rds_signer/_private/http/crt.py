# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
#  pyright: reportMissingTypeStubs=false,reportUnknownMemberType=false
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Final

from awscrt import http as crt_http
from awscrt import io as crt_io
from awscrt.aio.http import AIOHttpClientConnectionUnified, AIOHttpClientStreamUnified
from awscrt.exceptions import AwsCrtError

from ..._http import URI, Field, HTTPResponse, tuples_to_fields
from ...exceptions import HTTPClientError
from ...interfaces.http import HTTPClientConfiguration, HTTPRequest
from ...utils import async_list

logger: Final = logging.getLogger(__name__)


class _AWSCRTEventLoop:
    def __init__(self) -> None:
        self.bootstrap = self._initialize_default_loop()

    def _initialize_default_loop(self) -> crt_io.ClientBootstrap:
        event_loop_group = crt_io.EventLoopGroup(1)
        host_resolver = crt_io.DefaultHostResolver(event_loop_group)
        return crt_io.ClientBootstrap(event_loop_group, host_resolver)


@dataclass(kw_only=True)
class AWSCRTHTTPClientConfig(HTTPClientConfiguration):
    pass


class AWSCRTHTTPClient:
    """Implementation of :py:class:`...interfaces.http.HTTPClient` using awscrt.

    A connection is opened for each request and closed once the response body has
    been read.
    """

    _HTTP_PORT = 80
    _HTTPS_PORT = 443

    def __init__(
        self,
        eventloop: _AWSCRTEventLoop | None = None,
        client_config: AWSCRTHTTPClientConfig | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = client_config or AWSCRTHTTPClientConfig()
        if eventloop is None:
            eventloop = _AWSCRTEventLoop()
        self._eventloop = eventloop
        self._client_bootstrap = self._eventloop.bootstrap
        self._tls_ctx = crt_io.ClientTlsContext(crt_io.TlsContextOptions())
        self._socket_options = crt_io.SocketOptions()

    async def send(self, request: HTTPRequest) -> HTTPResponse:
        """Send HTTP request using awscrt client.

        :param request: The request including destination URI, fields, payload.
        """
        crt_request = self._marshal_request(request)
        logger.debug("Sending %s request to %s.", request.method, request.destination)
        try:
            connection = await self._build_new_connection(request.destination)
        except AwsCrtError as e:
            raise HTTPClientError(
                f"Unable to connect to {request.destination.netloc}: {e}"
            ) from e

        try:
            await self._validate_connection(connection)
            crt_stream = connection.request(
                crt_request,
                request_body_generator=self._create_body_generator(request.body),
            )
            return await self._await_response(crt_stream)
        except AwsCrtError as e:
            raise HTTPClientError(
                f"{request.method} {request.destination.netloc} failed: {e}"
            ) from e
        finally:
            await connection.close()

    async def _await_response(
        self, stream: AIOHttpClientStreamUnified
    ) -> HTTPResponse:
        status_code = await stream.get_response_status_code()
        headers = await stream.get_response_headers()
        chunks: list[bytes] = []
        while chunk := await stream.get_next_response_chunk():
            chunks.append(chunk)
        return HTTPResponse(
            status=status_code,
            fields=tuples_to_fields(headers),
            body=async_list(chunks),
        )

    async def _build_new_connection(self, url: URI) -> AIOHttpClientConnectionUnified:
        if url.scheme == "http":
            port = self._HTTP_PORT
            tls_connection_options = None
        elif url.scheme == "https":
            port = self._HTTPS_PORT
            tls_connection_options = self._tls_ctx.new_connection_options()
            tls_connection_options.set_server_name(url.host)
            tls_connection_options.set_alpn_list(["h2", "http/1.1"])
        else:
            raise HTTPClientError(
                f"AWSCRTHTTPClient does not support URL scheme {url.scheme}"
            )
        if url.port is not None:
            port = url.port

        return await AIOHttpClientConnectionUnified.new(
            bootstrap=self._client_bootstrap,
            host_name=url.host,
            port=port,
            socket_options=self._socket_options,
            tls_connection_options=tls_connection_options,
        )

    async def _validate_connection(
        self, connection: AIOHttpClientConnectionUnified
    ) -> None:
        """Validates an existing connection against the client config.

        Checks performed:
        * If ``force_http_2`` is enabled: Is the connection HTTP/2?
        """
        force_http_2 = self._config.force_http_2
        if force_http_2 and connection.version is not crt_http.HttpVersion.Http2:
            negotiated = crt_http.HttpVersion(connection.version).name
            raise HTTPClientError(f"HTTP/2 could not be negotiated: {negotiated}")

    def _render_path(self, url: URI) -> str:
        path = url.path if url.path is not None else "/"
        query = f"?{url.query}" if url.query is not None else ""
        return f"{path}{query}"

    def _marshal_request(self, request: HTTPRequest) -> crt_http.HttpRequest:
        """Create :py:class:`awscrt.http.HttpRequest` from an ``HTTPRequest``."""
        if "host" not in request.fields:
            request.fields.set_field(
                Field(name="host", values=[request.destination.netloc])
            )
        if "accept" not in request.fields:
            request.fields.set_field(Field(name="accept", values=["*/*"]))

        headers_list: list[tuple[str, str]] = []
        for fld in request.fields:
            headers_list.extend(fld.as_tuples())

        return crt_http.HttpRequest(
            method=request.method,
            path=self._render_path(request.destination),
            headers=crt_http.HttpHeaders(headers_list),
        )

    async def _create_body_generator(self, body: bytes) -> AsyncGenerator[bytes, None]:
        if body:
            yield body
