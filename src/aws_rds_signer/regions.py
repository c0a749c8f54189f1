# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import asyncio
import configparser
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Final

from .interfaces.config import RegionResolver

logger: Final = logging.getLogger(__name__)

DEFAULT_REGION: Final = "us-east-1"


def resolve_region(configured: str | None, ambient: str | None) -> str:
    """Pick the region to sign for.

    An explicitly configured region always wins, then the ambient region found in
    the environment, then ``us-east-1``. Empty strings count as unset.
    """
    if configured:
        return configured
    if ambient:
        return ambient
    return DEFAULT_REGION


class EnvironmentRegionResolver:
    """Resolves the region from ``AWS_REGION`` or ``AWS_DEFAULT_REGION``."""

    _ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    async def get_region(self) -> str | None:
        environ = os.environ if self._environ is None else self._environ
        for name in self._ENV_VARS:
            if region := environ.get(name):
                logger.debug("Resolved region %s from %s.", region, name)
                return region
        return None


class ConfigFileRegionResolver:
    """Resolves the region from the active profile of the shared AWS config file."""

    def __init__(
        self,
        *,
        config_path: Path | None = None,
        profile: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """
        :param config_path: Path of the config file. Defaults to ``AWS_CONFIG_FILE``
            or ``~/.aws/config``.
        :param profile: Profile to read. Defaults to ``AWS_PROFILE`` or ``default``.
        :param environ: Environment used for the defaults above.
        """
        self._config_path = config_path
        self._profile = profile
        self._environ = environ

    async def get_region(self) -> str | None:
        return await asyncio.to_thread(self._read_region)

    def _read_region(self) -> str | None:
        environ = os.environ if self._environ is None else self._environ
        config_path = self._config_path
        if config_path is None:
            config_path = Path(
                environ.get("AWS_CONFIG_FILE", Path.home() / ".aws" / "config")
            ).expanduser()
        if not config_path.exists():
            return None

        parser = configparser.ConfigParser()
        parser.read(config_path)

        profile = self._profile or environ.get("AWS_PROFILE", "default")
        section_name = f"profile {profile}" if profile != "default" else "default"
        if section_name not in parser:
            return None

        region = parser[section_name].get("region")
        if region:
            logger.debug("Resolved region %s from %s.", region, config_path)
        return region or None


class ChainedRegionResolver:
    """Returns the first region found by a sequence of region resolvers."""

    def __init__(self, resolvers: Sequence[RegionResolver]) -> None:
        self._resolvers = resolvers

    async def get_region(self) -> str | None:
        for resolver in self._resolvers:
            if region := await resolver.get_region():
                return region
        logger.debug("No region found by %s resolvers.", len(self._resolvers))
        return None


def create_default_region_chain() -> RegionResolver:
    """Creates the default region resolver chain."""
    return ChainedRegionResolver(
        resolvers=(EnvironmentRegionResolver(), ConfigFileRegionResolver())
    )
