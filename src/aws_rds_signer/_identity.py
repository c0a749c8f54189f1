# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypedDict

from .interfaces.identity import AWSCredentialsIdentity, IdentityResolver
from .utils import ensure_utc


@dataclass(kw_only=True)
class AWSCredentialIdentity(AWSCredentialsIdentity):
    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)
    expiration: datetime | None = None

    def __post_init__(self) -> None:
        if self.expiration is not None:
            self.expiration = ensure_utc(self.expiration)


class AWSIdentityProperties(TypedDict, total=False):
    profile_name: str
    """Named profile to read from shared credentials files, overriding
    ``AWS_PROFILE``."""


type AWSCredentialsResolver = IdentityResolver[
    AWSCredentialIdentity, AWSIdentityProperties
]
