# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from .config import Clock, RegionResolver
from .http import HTTPClient, HTTPClientConfiguration, HTTPRequest, HTTPResponse
from .identity import AWSCredentialsIdentity, Identity, IdentityResolver

__all__ = (
    "AWSCredentialsIdentity",
    "Clock",
    "HTTPClient",
    "HTTPClientConfiguration",
    "HTTPRequest",
    "HTTPResponse",
    "Identity",
    "IdentityResolver",
    "RegionResolver",
)
