# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class RDSSignerError(Exception):
    """Top-level exception to capture token generation errors."""


class ParseError(RDSSignerError, ValueError):
    """A host, port, or URL could not be parsed into a valid request target."""


class SignerError(RDSSignerError):
    """Credentials could not be resolved or the request could not be signed.

    The message of the originating error is preserved and the original exception is
    chained as the cause.
    """


class EnvVarError(RDSSignerError):
    """A required environment variable is missing or holds an invalid value."""


class MissingExpectedParameterError(RDSSignerError, ValueError):
    """A required signer option was never configured."""


class CredentialsResolutionError(RDSSignerError):
    """A credentials source was unable to provide credentials.

    Raised by credentials resolvers. A resolver chain treats this as a signal to try
    the next source.
    """


class HTTPClientError(RDSSignerError):
    """A request made by one of the bundled HTTP clients failed to complete."""
