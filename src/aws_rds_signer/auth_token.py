# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Final, Self
from urllib.parse import urlsplit

from ._http import URI
from ._identity import AWSCredentialIdentity, AWSCredentialsResolver
from .credentials_resolvers import create_default_chain
from .exceptions import (
    EnvVarError,
    MissingExpectedParameterError,
    ParseError,
    SignerError,
)
from .interfaces.config import Clock, RegionResolver
from .interfaces.http import HTTPClient
from .regions import create_default_region_chain, resolve_region
from .signers import (
    RDS_SERVICE_NAME,
    SIGV4_TIMESTAMP_FORMAT,
    SigV4QuerySigner,
    percent_encode_sequence,
)
from .utils import SystemClock, ensure_utc

logger: Final = logging.getLogger(__name__)

DEFAULT_PORT: Final = 5432
DEFAULT_EXPIRES_IN: Final = timedelta(seconds=900)

HOST_ENV_VAR: Final = "DB_HOST"
USER_ENV_VAR: Final = "DB_USER"
REGION_ENV_VAR: Final = "DB_REGION"
PORT_ENV_VAR: Final = "DB_PORT"
EXPIRES_IN_ENV_VAR: Final = "DB_TOKEN_EXPIRES_IN_SECONDS"


@dataclass(frozen=True, kw_only=True)
class SigningConfig:
    """Everything that identifies the database connection a token is minted for.

    Validated on construction. A host or port that can't form a URL authority,
    or a user that can't be encoded into the query, raises :py:class:`ParseError`.
    """

    host: str
    """The database endpoint, for example
    ``mydb.cluster-abc.us-east-1.rds.amazonaws.com``."""

    user: str
    """The database user the token authenticates."""

    port: int = DEFAULT_PORT
    """The port the database listens on."""

    region: str | None = None
    """The region to sign for. When unset the ambient region is used."""

    expires_in: timedelta = DEFAULT_EXPIRES_IN
    """How long the token stays valid. Must be a positive whole number of
    seconds."""

    def __post_init__(self) -> None:
        if not self.host:
            raise MissingExpectedParameterError("A database host is required.")
        if not self.user:
            raise MissingExpectedParameterError("A database user is required.")
        if self.expires_in <= timedelta(0):
            raise ValueError(
                f"expires_in must be positive, received {self.expires_in}."
            )
        if self.expires_in % timedelta(seconds=1):
            raise ValueError(
                f"expires_in must be a whole number of seconds, "
                f"received {self.expires_in}."
            )
        # Raises ParseError for a malformed host or user, or an out of range port.
        self.destination()

    def destination(self) -> URI:
        """The ``connect`` request for this configuration, before signing."""
        try:
            query = percent_encode_sequence(
                [("Action", "connect"), ("DBUser", self.user)]
            )
        except UnicodeEncodeError as e:
            raise ParseError(f"Invalid database user: {self.user!r}") from e
        return URI(host=self.host, port=self.port, path="/", query=query)


@dataclass(frozen=True, kw_only=True)
class Signer:
    """Generates IAM authentication tokens for one database connection.

    Instances are immutable and hold no per-call state, so a single signer can be
    shared by concurrent tasks. Create one with :py:meth:`Signer.builder`.
    """

    config: SigningConfig
    credentials_resolver: AWSCredentialsResolver = field(repr=False)
    region_resolver: RegionResolver = field(repr=False)
    clock: Clock = field(default_factory=SystemClock, repr=False)
    signer: SigV4QuerySigner = field(default_factory=SigV4QuerySigner, repr=False)

    @staticmethod
    def builder() -> "SignerBuilder":
        """Start configuring a new signer."""
        return SignerBuilder()

    async def fetch_token(self) -> str:
        """Resolve credentials and region, then generate a token for the current
        time.

        The token has the form ``host:port/?Action=connect&DBUser=...&X-Amz-...``
        and can be passed as the password when connecting to the database.

        :raises SignerError: If credentials or the region can't be resolved, or the
            request can't be signed.
        :raises ParseError: If the signed URL doesn't parse back to the configured
            host and port.
        """
        try:
            identity = await self.credentials_resolver.get_identity(properties={})
        except Exception as e:
            raise SignerError(str(e)) from e

        region = self.config.region
        if not region:
            try:
                ambient = await self.region_resolver.get_region()
            except Exception as e:
                raise SignerError(str(e)) from e
            region = resolve_region(region, ambient)

        return self.generate_token(
            identity=identity, region=region, now=self.clock.now()
        )

    def generate_token(
        self, *, identity: AWSCredentialIdentity, region: str, now: datetime
    ) -> str:
        """Sign the configured ``connect`` request with already resolved inputs.

        :param identity: The credentials to sign with.
        :param region: The region the signature is scoped to.
        :param now: The signing time. Naive datetimes are treated as UTC.
        """
        expires = int(self.config.expires_in.total_seconds())
        logger.debug(
            "Generating token for %s@%s:%s in %s, valid for %ss.",
            self.config.user,
            self.config.host,
            self.config.port,
            region,
            expires,
        )
        try:
            presigned = self.signer.presign(
                signing_properties={
                    "region": region,
                    "service": RDS_SERVICE_NAME,
                    "date": ensure_utc(now).strftime(SIGV4_TIMESTAMP_FORMAT),
                    "expires": expires,
                },
                destination=self.config.destination(),
                identity=identity,
            )
        except MissingExpectedParameterError as e:
            raise SignerError(str(e)) from e

        url = presigned.build()
        self._verify_url(url)
        return url.removeprefix(f"{presigned.scheme}://")

    def _verify_url(self, url: str) -> None:
        try:
            parsed = urlsplit(url)
            hostname, port = parsed.hostname, parsed.port
        except ValueError as e:
            raise ParseError(f"Generated URL could not be parsed: {e}") from e

        if hostname != self.config.host.lower() or port != self.config.port:
            raise ParseError(
                f"Generated URL does not address {self.config.host}:"
                f"{self.config.port}."
            )


@dataclass(frozen=True, kw_only=True)
class SignerBuilder:
    """Fluent, immutable builder for :py:class:`Signer`.

    Every setter returns a new builder, so a partially configured builder can be
    reused as a template.
    """

    _host: str | None = None
    _port: int = DEFAULT_PORT
    _user: str | None = None
    _region: str | None = None
    _expires_in: timedelta = DEFAULT_EXPIRES_IN
    _credentials_resolver: AWSCredentialsResolver | None = None
    _region_resolver: RegionResolver | None = None
    _clock: Clock | None = None
    _http_client: HTTPClient | None = None

    def host(self, host: str) -> Self:
        return dataclasses.replace(self, _host=host)

    def port(self, port: int) -> Self:
        return dataclasses.replace(self, _port=port)

    def user(self, user: str) -> Self:
        return dataclasses.replace(self, _user=user)

    def region(self, region: str | None) -> Self:
        return dataclasses.replace(self, _region=region)

    def expires_in(self, expires_in: timedelta | int) -> Self:
        """Set how long tokens stay valid, as a ``timedelta`` or in seconds."""
        if not isinstance(expires_in, timedelta):
            expires_in = timedelta(seconds=expires_in)
        return dataclasses.replace(self, _expires_in=expires_in)

    def credentials_resolver(self, resolver: AWSCredentialsResolver) -> Self:
        return dataclasses.replace(self, _credentials_resolver=resolver)

    def region_resolver(self, resolver: RegionResolver) -> Self:
        return dataclasses.replace(self, _region_resolver=resolver)

    def clock(self, clock: Clock) -> Self:
        return dataclasses.replace(self, _clock=clock)

    def http_client(self, http_client: HTTPClient) -> Self:
        """Set the HTTP client the default credentials chain uses to reach the
        instance metadata service. Ignored when a credentials resolver is set."""
        return dataclasses.replace(self, _http_client=http_client)

    def build(self) -> Signer:
        """Validate the configuration and create the signer.

        Unset resolvers fall back to the default credentials chain, built with the
        configured HTTP client, and the default region chain. The clock defaults to
        the system clock.

        :raises MissingExpectedParameterError: If the host or user is missing.
        :raises ParseError: If the host, port or user is invalid.
        """
        config = SigningConfig(
            host=self._host or "",
            port=self._port,
            user=self._user or "",
            region=self._region,
            expires_in=self._expires_in,
        )
        return Signer(
            config=config,
            credentials_resolver=(
                self._credentials_resolver
                or create_default_chain(http_client=self._http_client)
            ),
            region_resolver=self._region_resolver or create_default_region_chain(),
            clock=self._clock or SystemClock(),
        )

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> Self:
        """Create a builder from the ``DB_*`` environment variables.

        ``DB_HOST`` and ``DB_USER`` are required. ``DB_PORT``, ``DB_REGION`` and
        ``DB_TOKEN_EXPIRES_IN_SECONDS`` are optional.

        :param environ: The environment to read. Defaults to ``os.environ``.
        :raises EnvVarError: If a required variable is missing or a numeric
            variable isn't an integer.
        """
        environ = os.environ if environ is None else environ
        builder = cls(
            _host=_required_env(environ, HOST_ENV_VAR),
            _user=_required_env(environ, USER_ENV_VAR),
            _region=environ.get(REGION_ENV_VAR) or None,
        )
        if (port := _int_env(environ, PORT_ENV_VAR)) is not None:
            builder = builder.port(port)
        if (expires_in := _int_env(environ, EXPIRES_IN_ENV_VAR)) is not None:
            builder = builder.expires_in(expires_in)
        return builder


def _required_env(environ: Mapping[str, str], name: str) -> str:
    if not (value := environ.get(name)):
        raise EnvVarError(f"Environment variable {name} must be set.")
    return value


def _int_env(environ: Mapping[str, str], name: str) -> int | None:
    if not (value := environ.get(name)):
        return None
    try:
        return int(value)
    except ValueError as e:
        raise EnvVarError(
            f"Environment variable {name} must be an integer, received {value!r}."
        ) from e
