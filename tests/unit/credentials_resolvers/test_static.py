#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from aws_rds_signer import AWSCredentialIdentity
from aws_rds_signer.credentials_resolvers import StaticCredentialsResolver


async def test_returns_configured_credentials() -> None:
    credentials = AWSCredentialIdentity(
        access_key_id="akid", secret_access_key="secret", session_token="session"
    )
    resolver = StaticCredentialsResolver(credentials=credentials)

    assert await resolver.get_identity(properties={}) is credentials
