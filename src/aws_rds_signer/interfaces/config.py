# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Supplies the current time used to timestamp and scope a signature."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...


class RegionResolver(Protocol):
    """Looks up an ambient AWS region when one isn't configured explicitly."""

    async def get_region(self) -> str | None:
        """Return the region from this source, or ``None`` if it has none."""
        ...
