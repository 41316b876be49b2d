"""Scenario users."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from aiohttp.test_utils import TestClient

logger = logging.getLogger(__name__)


class User:
    """An actor that sends requests through its own client.

    Subclasses typically override ``initialize`` to authenticate after
    calling the base implementation.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__
        self.client: Optional["TestClient"] = None

    async def initialize(self, client: "TestClient") -> None:
        """Bind the user to ``client``. Called once per scenario run."""
        logger.debug(f"Initializing user {self.name}")
        self.client = client

    @property
    def is_initialized(self) -> bool:
        return self.client is not None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
