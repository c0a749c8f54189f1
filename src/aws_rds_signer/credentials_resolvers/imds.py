#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Final, Literal

from .. import __version__
from .._http import URI, Field, Fields, HTTPRequest
from .._identity import AWSCredentialIdentity, AWSIdentityProperties
from ..exceptions import CredentialsResolutionError, HTTPClientError
from ..interfaces.http import HTTPClient

logger: Final = logging.getLogger(__name__)

_USER_AGENT_FIELD = Field(
    name="User-Agent",
    values=[f"aws-rds-signer-imds-client/{__version__}"],
)


@dataclass(init=False)
class Config:
    """Configuration for EC2Metadata."""

    _HOST_MAPPING = MappingProxyType(
        {"IPv4": "169.254.169.254", "IPv6": "fd00:ec2::254"}
    )
    _MIN_TTL = 5
    _MAX_TTL = 21600

    endpoint_uri: URI
    endpoint_mode: Literal["IPv4", "IPv6"]
    token_ttl: int
    timeout: float
    ec2_instance_profile_name: str | None

    def __init__(
        self,
        *,
        endpoint_uri: URI | None = None,
        endpoint_mode: Literal["IPv4", "IPv6"] = "IPv4",
        token_ttl: int = _MAX_TTL,
        timeout: float = 1.0,
        ec2_instance_profile_name: str | None = None,
    ):
        self.endpoint_mode = endpoint_mode
        self.endpoint_uri = self._resolve_endpoint(endpoint_uri, endpoint_mode)
        self.token_ttl = self._validate_token_ttl(token_ttl)
        self.timeout = timeout
        self.ec2_instance_profile_name = ec2_instance_profile_name

    def _validate_token_ttl(self, ttl: int) -> int:
        if not self._MIN_TTL <= ttl <= self._MAX_TTL:
            raise ValueError(
                f"Token TTL must be between {self._MIN_TTL} and {self._MAX_TTL} "
                "seconds."
            )
        return ttl

    def _resolve_endpoint(
        self, endpoint_uri: URI | None, endpoint_mode: Literal["IPv4", "IPv6"]
    ) -> URI:
        if endpoint_uri is not None:
            return endpoint_uri

        return URI(
            scheme="http",
            host=self._HOST_MAPPING.get(endpoint_mode, self._HOST_MAPPING["IPv4"]),
            port=80,
        )


class Token:
    """Represents an IMDSv2 session token with a value and method for checking
    expiration."""

    def __init__(self, value: str, ttl: int):
        self._value = value
        self._ttl = ttl
        self._created_time = datetime.now()

    def is_expired(self) -> bool:
        return datetime.now() - self._created_time >= timedelta(seconds=self._ttl)

    @property
    def value(self) -> str:
        return self._value


class EC2Metadata:
    """Reads paths from the instance metadata service using IMDSv2 session tokens."""

    _TOKEN_PATH = "/latest/api/token"  # noqa: S105

    def __init__(self, http_client: HTTPClient, config: Config | None = None):
        self._http_client = http_client
        self._config = config or Config()
        self._refresh_lock = asyncio.Lock()
        self._token: Token | None = None

    def _should_refresh(self) -> bool:
        return self._token is None or self._token.is_expired()

    async def _get_token(self) -> Token:
        if self._should_refresh():
            async with self._refresh_lock:
                if self._should_refresh():
                    value = await self._send(
                        method="PUT",
                        path=self._TOKEN_PATH,
                        field=Field(
                            name="x-aws-ec2-metadata-token-ttl-seconds",
                            values=[str(self._config.token_ttl)],
                        ),
                    )
                    self._token = Token(value, self._config.token_ttl)
        assert self._token is not None  # noqa: S101
        return self._token

    async def get(self, *, path: str) -> str:
        token = await self._get_token()
        return await self._send(
            method="GET",
            path=path,
            field=Field(name="x-aws-ec2-metadata-token", values=[token.value]),
        )

    async def _send(self, *, method: str, path: str, field: Field) -> str:
        request = HTTPRequest(
            method=method,
            destination=URI(
                scheme=self._config.endpoint_uri.scheme,
                host=self._config.endpoint_uri.host,
                port=self._config.endpoint_uri.port,
                path=path,
            ),
            fields=Fields([_USER_AGENT_FIELD, field]),
        )
        try:
            async with asyncio.timeout(self._config.timeout):
                response = await self._http_client.send(request)
                body = await response.consume_body()
        except (HTTPClientError, TimeoutError) as e:
            raise CredentialsResolutionError(
                f"Unable to reach the instance metadata service: {e!r}"
            ) from e

        if response.status != 200:
            raise CredentialsResolutionError(
                f"Instance metadata service returned status {response.status} "
                f"for {method} {path}"
            )
        return body.decode("utf-8")


class IMDSCredentialsResolver:
    """Resolves AWS Credentials from an EC2 Instance Metadata Service (IMDS) client.

    Credentials are read from the service on every call.
    """

    _METADATA_PATH_BASE = "/latest/meta-data/iam/security-credentials"

    def __init__(self, http_client: HTTPClient, config: Config | None = None):
        self._config = config or Config()
        self._ec2_metadata_client = EC2Metadata(
            http_client=http_client, config=self._config
        )
        self._profile_name = self._config.ec2_instance_profile_name

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialIdentity:
        profile = self._profile_name
        if profile is None:
            profile = await self._ec2_metadata_client.get(
                path=self._METADATA_PATH_BASE
            )
            profile = profile.strip()
        logger.debug("Fetching instance profile credentials for %s.", profile)

        creds_str = await self._ec2_metadata_client.get(
            path=f"{self._METADATA_PATH_BASE}/{profile}"
        )
        try:
            creds = json.loads(creds_str)
        except json.JSONDecodeError as e:
            raise CredentialsResolutionError(
                "Instance metadata service returned malformed credentials"
            ) from e

        access_key_id = creds.get("AccessKeyId")
        secret_access_key = creds.get("SecretAccessKey")
        session_token = creds.get("Token")
        expiration = creds.get("Expiration")
        if expiration is not None:
            expiration = datetime.fromisoformat(expiration).replace(tzinfo=UTC)

        if access_key_id is None or secret_access_key is None:
            raise CredentialsResolutionError(
                "AccessKeyId and SecretAccessKey are required"
            )

        return AWSCredentialIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
            expiration=expiration,
        )
