# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import dataclasses
import hmac
import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from hashlib import sha256
from typing import Final, Required, TypedDict
from urllib.parse import parse_qsl, quote

from ._http import URI
from ._identity import AWSCredentialIdentity
from .exceptions import MissingExpectedParameterError, SignerError
from .interfaces.identity import AWSCredentialsIdentity as _AWSCredentialsIdentity

logger: Final = logging.getLogger(__name__)

DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGNING_ALGORITHM: str = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR: str = "aws4_request"
RDS_SERVICE_NAME: str = "rds-db"
SIGNED_HEADERS: tuple[str, ...] = ("host",)
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

type QueryParams = Sequence[tuple[str, str]]


class SigV4QuerySigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: Required[str]
    expires: Required[int]


class SigV4QuerySigner:
    """Presigns GET requests with the AWS Signature Version 4 algorithm.

    The signature and everything needed to verify it travel in the query string, so
    the resulting URL can be handed to another party (a database server, for
    example) as a bearer credential. Only the ``host`` header is signed and the
    payload is always empty.
    """

    def presign(
        self,
        *,
        signing_properties: SigV4QuerySigningProperties,
        destination: URI,
        identity: AWSCredentialIdentity,
    ) -> URI:
        """Generate a copy of ``destination`` carrying a SigV4 query signature.

        :param signing_properties: SigV4QuerySigningProperties to define signing
            primitives such as the target service, region, date and expiry.
        :param destination: The URI to presign. Its query holds the operation
            parameters, which are kept ahead of the authentication parameters.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        """
        self._validate_signing_properties(signing_properties=signing_properties)
        self._validate_identity(
            identity=identity,
            signing_time=self._signing_time(signing_properties=signing_properties),
        )

        operation_params = parse_qsl(destination.query or "", keep_blank_values=True)
        auth_params = self.authentication_params(
            signing_properties=signing_properties,
            identity=identity,
        )
        logger.debug(
            "Presigning request to %s with scope %s",
            destination.netloc,
            self._scope(signing_properties=signing_properties),
        )

        # Construct core signing components
        canonical_request = self.canonical_request(
            destination=destination,
            query_params=[*operation_params, *auth_params],
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request,
            signing_properties=signing_properties,
        )
        signature = self.signature(
            string_to_sign=string_to_sign,
            secret_key=identity.secret_access_key,
            signing_properties=signing_properties,
        )

        # X-Amz-Signature isn't part of the canonical query, it always goes last.
        query = percent_encode_sequence(
            [*operation_params, *auth_params, ("X-Amz-Signature", signature)]
        )
        return dataclasses.replace(
            destination, path=destination.path or "/", query=query
        )

    def authentication_params(
        self,
        *,
        signing_properties: SigV4QuerySigningProperties,
        identity: AWSCredentialIdentity,
    ) -> list[tuple[str, str]]:
        """The ``X-Amz-*`` query parameters covered by the signature, in the order they
        are placed on the URL."""
        credential_scope = self._scope(signing_properties=signing_properties)
        params = [
            ("X-Amz-Algorithm", SIGNING_ALGORITHM),
            ("X-Amz-Credential", f"{identity.access_key_id}/{credential_scope}"),
            ("X-Amz-Date", signing_properties["date"]),
            ("X-Amz-Expires", str(signing_properties["expires"])),
            ("X-Amz-SignedHeaders", ";".join(SIGNED_HEADERS)),
        ]
        if identity.session_token is not None:
            params.append(("X-Amz-Security-Token", identity.session_token))
        return params

    def canonical_request(self, *, destination: URI, query_params: QueryParams) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\\n
            <CanonicalURI>\\n
            <CanonicalQueryString>\\n
            <CanonicalHeaders>\\n
            <SignedHeaders>\\n
            <HashedPayload>

        :param destination:
            The URI being presigned. Only its host, port and path are used.
        :param query_params:
            Every query parameter of the final URL except ``X-Amz-Signature``.
        """
        canonical_path = self._format_canonical_path(path=destination.path)
        canonical_query = self._format_canonical_query(query_params=query_params)
        signing_fields = self._signing_fields(uri=destination)
        canonical_fields = self._format_canonical_fields(fields=signing_fields)
        return (
            "GET\n"
            f"{canonical_path}\n"
            f"{canonical_query}\n"
            f"{canonical_fields}\n"
            f"{';'.join(signing_fields)}\n"
            f"{EMPTY_SHA256_HASH}"
        )

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        signing_properties: SigV4QuerySigningProperties,
    ) -> str:
        """The string to sign concatenates the formal identifier of the signing
        algorithm, the signing DateTime, the scope of the credentials, and a hash of the
        canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \\n
            RequestDateTime \\n
            CredentialScope  \\n
            HashedCanonicalRequest

        :param canonical_request:
            String generated from the `canonical_request` method.
        :param signing_properties:
            SigV4QuerySigningProperties to define signing primitives such as
            the target service, region, and date.
        """
        return (
            f"{SIGNING_ALGORITHM}\n"
            f"{signing_properties['date']}\n"
            f"{self._scope(signing_properties=signing_properties)}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def signing_key(
        self, *, secret_key: str, signing_properties: SigV4QuerySigningProperties
    ) -> bytes:
        """Derive the signing key scoped to the date, region and service.

        The date, region, service and terminator are individually hashed, each
        step keyed with the result of the previous one.
        """
        # Components of Signing Key Calculation
        #
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        k_date = self._hash(
            key=f"AWS4{secret_key}".encode(), value=signing_properties["date"][0:8]
        )
        k_region = self._hash(key=k_date, value=signing_properties["region"])
        k_service = self._hash(key=k_region, value=signing_properties["service"])
        return self._hash(key=k_service, value=SCOPE_TERMINATOR)

    def signature(
        self,
        *,
        string_to_sign: str,
        secret_key: str,
        signing_properties: SigV4QuerySigningProperties,
    ) -> str:
        """Sign the string to sign with a freshly derived signing key.

        Returns the signature as 64 lowercase hex characters.
        """
        k_signing = self.signing_key(
            secret_key=secret_key, signing_properties=signing_properties
        )
        return self._hash(key=k_signing, value=string_to_sign).hex()

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _validate_identity(
        self, *, identity: AWSCredentialIdentity, signing_time: datetime
    ) -> None:
        """Perform runtime and expiration checks before attempting signing.

        Expiration is judged at the signing time rather than the wall clock.
        """
        if not isinstance(identity, _AWSCredentialsIdentity):  # pyright: ignore
            raise SignerError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif not identity.access_key_id or not identity.secret_access_key:
            raise SignerError(
                "Credentials must include both an access key ID and a secret "
                "access key."
            )
        elif identity.expiration is not None and signing_time >= identity.expiration:
            raise SignerError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _validate_signing_properties(
        self, *, signing_properties: SigV4QuerySigningProperties
    ) -> None:
        for name in ("region", "service", "date", "expires"):
            if not signing_properties.get(name):
                raise MissingExpectedParameterError(
                    f"Cannot presign without a valid {name} in your "
                    f"signing_properties. Current value: {signing_properties.get(name)}"
                )

    def _signing_time(
        self, *, signing_properties: SigV4QuerySigningProperties
    ) -> datetime:
        try:
            return datetime.strptime(
                signing_properties["date"], SIGV4_TIMESTAMP_FORMAT
            ).replace(tzinfo=UTC)
        except ValueError as e:
            raise MissingExpectedParameterError(
                f"Signing date must use the {SIGV4_TIMESTAMP_FORMAT} format. "
                f"Current value: {signing_properties['date']}"
            ) from e

    def _scope(self, signing_properties: SigV4QuerySigningProperties) -> str:
        formatted_date = signing_properties["date"][0:8]
        region = signing_properties["region"]
        service = signing_properties["service"]
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{formatted_date}/{region}/{service}/{SCOPE_TERMINATOR}"

    def _format_canonical_path(self, *, path: str | None) -> str:
        if not path:
            return "/"
        return quote(string=path, safe="/")

    def _format_canonical_query(self, *, query_params: QueryParams) -> str:
        query_parts = (
            (quote(string=key, safe=""), quote(string=value, safe=""))
            for key, value in query_params
        )
        # key-value pairs must be in sorted order for their encoded forms.
        return "&".join(f"{key}={value}" for key, value in sorted(query_parts))

    def _signing_fields(self, *, uri: URI) -> dict[str, str]:
        # Presigned URLs are sent by someone else, so the host is the only header
        # that can be relied upon.
        return {"host": self._normalize_host_field(uri=uri)}

    def _normalize_host_field(self, *, uri: URI) -> str:
        if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) == uri.port:
            uri = dataclasses.replace(uri, port=None)
        return uri.netloc

    def _format_canonical_fields(self, *, fields: dict[str, str]) -> str:
        return "".join(
            f"{key}:{' '.join(value.split())}\n" for key, value in fields.items()
        )


def percent_encode_sequence(params: Iterable[tuple[str, str]]) -> str:
    """Serialize query parameters in the given order, escaping every character
    outside of the RFC 3986 unreserved set (``A-Z a-z 0-9 - _ . ~``)."""
    return "&".join(
        f"{quote(string=key, safe='')}={quote(string=value, safe='')}"
        for key, value in params
    )
