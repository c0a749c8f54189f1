#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import configparser
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from .._identity import AWSCredentialIdentity, AWSIdentityProperties
from ..exceptions import CredentialsResolutionError

logger: Final = logging.getLogger(__name__)


class SharedCredentialsFileResolver:
    """Resolves AWS Credentials from a profile in the shared credentials file."""

    def __init__(
        self,
        *,
        credentials_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """
        :param credentials_path: Path of the credentials file. Defaults to
            ``AWS_SHARED_CREDENTIALS_FILE`` or ``~/.aws/credentials``.
        :param environ: Environment used to locate the file and the profile.
        """
        self._credentials_path = credentials_path
        self._environ = environ

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialIdentity:
        environ = os.environ if self._environ is None else self._environ
        profile = properties.get("profile_name") or environ.get(
            "AWS_PROFILE", "default"
        )
        values = await asyncio.to_thread(self._read_profile, environ, profile)

        access_key_id = values.get("aws_access_key_id")
        secret_access_key = values.get("aws_secret_access_key")
        if not access_key_id or not secret_access_key:
            raise CredentialsResolutionError(
                f"Profile {profile!r} in the shared credentials file must set "
                "aws_access_key_id and aws_secret_access_key"
            )

        logger.debug("Resolved credentials from shared profile %s.", profile)
        return AWSCredentialIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=values.get("aws_session_token") or None,
        )

    def _read_profile(self, environ: Mapping[str, str], profile: str) -> dict[str, str]:
        credentials_path = self._credentials_path
        if credentials_path is None:
            credentials_path = Path(
                environ.get(
                    "AWS_SHARED_CREDENTIALS_FILE", Path.home() / ".aws" / "credentials"
                )
            ).expanduser()
        if not credentials_path.exists():
            raise CredentialsResolutionError(
                f"Shared credentials file {credentials_path} does not exist"
            )

        parser = configparser.ConfigParser()
        try:
            parser.read(credentials_path)
        except configparser.Error as e:
            raise CredentialsResolutionError(
                f"Unable to parse shared credentials file {credentials_path}: {e}"
            ) from e

        if profile not in parser:
            raise CredentialsResolutionError(
                f"Profile {profile!r} not found in {credentials_path}"
            )
        return dict(parser[profile])
