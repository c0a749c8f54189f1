#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .chain import ChainedCredentialsResolver, create_default_chain
from .environment import EnvironmentCredentialsResolver
from .imds import IMDSCredentialsResolver
from .shared_file import SharedCredentialsFileResolver
from .static import StaticCredentialsResolver

__all__ = (
    "ChainedCredentialsResolver",
    "EnvironmentCredentialsResolver",
    "IMDSCredentialsResolver",
    "SharedCredentialsFileResolver",
    "StaticCredentialsResolver",
    "create_default_chain",
)
