from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .chargepoint_client import ChargePointClient


@dataclass
class AuthSession:
    """Hold a ChargePoint session token and refresh it on a fixed interval.

    The server is never asked whether the token is still valid; a token is
    simply replaced once it is ``refresh_interval`` seconds old.
    """

    client: ChargePointClient
    username: str
    password: str
    refresh_interval: float = 30 * 60
    clock: Callable[[], float] = field(default=time.time, repr=False)
    token: str | None = field(default=None, repr=False)
    last_auth: float | None = None

    def is_stale(self) -> bool:
        if self.token is None or self.last_auth is None:
            return True
        return self.last_auth + self.refresh_interval <= self.clock()

    async def ensure_token(self) -> str:
        """Return a usable token, re-authenticating when it is missing or stale."""
        if self.is_stale():
            token = await self.client.validate(self.username, self.password)
            self.token = token
            self.last_auth = self.clock()
            logging.info(f"ChargePoint session refreshed for {self.username}")
        return self.token  # type: ignore[return-value]
