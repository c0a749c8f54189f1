#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
# pyright: reportPrivateUsage=false
from unittest.mock import AsyncMock

import pytest
from aws_rds_signer import AWSCredentialIdentity
from aws_rds_signer.credentials_resolvers import (
    ChainedCredentialsResolver,
    EnvironmentCredentialsResolver,
    IMDSCredentialsResolver,
    SharedCredentialsFileResolver,
    StaticCredentialsResolver,
    create_default_chain,
)
from aws_rds_signer.exceptions import CredentialsResolutionError

CREDENTIALS = AWSCredentialIdentity(access_key_id="akid", secret_access_key="secret")


async def test_first_successful_resolver_wins() -> None:
    unused = AsyncMock()
    resolver = ChainedCredentialsResolver(
        resolvers=(
            EnvironmentCredentialsResolver(environ={}),
            StaticCredentialsResolver(credentials=CREDENTIALS),
            unused,
        )
    )

    assert await resolver.get_identity(properties={}) is CREDENTIALS
    unused.get_identity.assert_not_awaited()


async def test_all_resolvers_fail() -> None:
    resolver = ChainedCredentialsResolver(
        resolvers=(
            EnvironmentCredentialsResolver(environ={}),
            EnvironmentCredentialsResolver(environ={"AWS_ACCESS_KEY_ID": "akid"}),
        )
    )

    with pytest.raises(CredentialsResolutionError, match="AWS_ACCESS_KEY_ID"):
        await resolver.get_identity(properties={})


async def test_other_errors_propagate() -> None:
    failing = AsyncMock()
    failing.get_identity.side_effect = RuntimeError("boom")
    resolver = ChainedCredentialsResolver(
        resolvers=(failing, StaticCredentialsResolver(credentials=CREDENTIALS))
    )

    with pytest.raises(RuntimeError, match="boom"):
        await resolver.get_identity(properties={})


async def test_properties_are_forwarded() -> None:
    nested = AsyncMock()
    nested.get_identity.return_value = CREDENTIALS
    resolver = ChainedCredentialsResolver(resolvers=(nested,))

    await resolver.get_identity(properties={"profile_name": "dev"})
    nested.get_identity.assert_awaited_once_with(properties={"profile_name": "dev"})


def test_default_chain_order() -> None:
    http_client = AsyncMock()
    chain = create_default_chain(http_client)

    assert isinstance(chain, ChainedCredentialsResolver)
    assert [type(r) for r in chain._resolvers] == [
        EnvironmentCredentialsResolver,
        SharedCredentialsFileResolver,
        IMDSCredentialsResolver,
    ]
