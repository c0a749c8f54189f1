# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
__version__ = "0.1.0"
__license__ = "Apache-2.0"

from ._identity import AWSCredentialIdentity, AWSIdentityProperties
from ._private.http.aiohttp_client import AIOHTTPClient, AIOHTTPClientConfig
from ._private.http.crt import AWSCRTHTTPClient, AWSCRTHTTPClientConfig
from .auth_token import Signer, SignerBuilder, SigningConfig
from .exceptions import (
    CredentialsResolutionError,
    EnvVarError,
    ParseError,
    RDSSignerError,
    SignerError,
)
from .regions import resolve_region
from .signers import SigV4QuerySigner

__all__ = (
    "AIOHTTPClient",
    "AIOHTTPClientConfig",
    "AWSCRTHTTPClient",
    "AWSCRTHTTPClientConfig",
    "AWSCredentialIdentity",
    "AWSIdentityProperties",
    "CredentialsResolutionError",
    "EnvVarError",
    "ParseError",
    "RDSSignerError",
    "SigV4QuerySigner",
    "Signer",
    "SignerBuilder",
    "SigningConfig",
    "resolve_region",
)
