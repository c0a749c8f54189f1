#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Sequence
from typing import Final

from .._identity import (
    AWSCredentialIdentity,
    AWSCredentialsResolver,
    AWSIdentityProperties,
)
from .._private.http.aiohttp_client import AIOHTTPClient
from ..exceptions import CredentialsResolutionError
from ..interfaces.http import HTTPClient
from .environment import EnvironmentCredentialsResolver
from .imds import IMDSCredentialsResolver
from .shared_file import SharedCredentialsFileResolver

logger: Final = logging.getLogger(__name__)


class ChainedCredentialsResolver:
    """Attempts to resolve credentials by checking a sequence of sub-resolvers.

    If a nested resolver raises a :py:class:`CredentialsResolutionError`, the next
    resolver in the chain will be attempted. Any other exception propagates
    immediately. Nothing is cached between calls.
    """

    def __init__(self, resolvers: Sequence[AWSCredentialsResolver]) -> None:
        """Construct a ChainedCredentialsResolver.

        :param resolvers: The sequence of resolvers to resolve credentials from.
        """
        self._resolvers = resolvers

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialIdentity:
        logger.debug("Attempting to resolve credentials from resolver chain.")
        failures: list[str] = []
        for resolver in self._resolvers:
            try:
                logger.debug("Trying credentials resolver %s.", type(resolver))
                return await resolver.get_identity(properties=properties)
            except CredentialsResolutionError as e:
                logger.debug(
                    "Failed to resolve credentials from %s: %s", type(resolver), e
                )
                failures.append(f"{type(resolver).__name__}: {e}")

        raise CredentialsResolutionError(
            "Failed to resolve credentials from resolver chain. "
            + "; ".join(failures)
        )


def create_default_chain(
    http_client: HTTPClient | None = None,
) -> AWSCredentialsResolver:
    """Creates the default AWS credentials resolver chain.

    Sources are tried in order: environment variables, the shared credentials file,
    then the EC2 instance metadata service.

    :param http_client: Client used to reach the instance metadata service. Defaults
        to an :py:class:`AIOHTTPClient`.
    """
    if http_client is None:
        http_client = AIOHTTPClient()

    return ChainedCredentialsResolver(
        resolvers=(
            EnvironmentCredentialsResolver(),
            SharedCredentialsFileResolver(),
            IMDSCredentialsResolver(http_client=http_client),
        )
    )
