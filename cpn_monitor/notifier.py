from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx


@dataclass
class SendResult:
    ok: bool
    error: str | None = None


def mention(user_id: str) -> str:
    """Slack mention markup for a member id."""
    return f"<@{user_id}>"


class SlackNotifier:
    """Best-effort sender for a Slack incoming webhook.

    ``send`` never raises: delivery problems are logged and reported in the
    returned :class:`SendResult`.  In debug mode messages are only logged.
    """

    def __init__(
        self,
        hook_url: str | None,
        debug: bool = False,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.hook_url = hook_url
        self.debug = debug
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, text: str) -> SendResult:
        if self.debug:
            logging.info(f"[debug] Slack message: {text}")
            return SendResult(ok=True)
        if not self.hook_url:
            logging.warning(f"No Slack hook configured, dropping message: {text}")
            return SendResult(ok=False, error="no hook url")
        try:
            resp = await self._client.post(self.hook_url, json={"text": text})
            resp.raise_for_status()
        except Exception as e:
            # httpx.HTTPError for transport/status, httpx.InvalidURL for a bad hook
            logging.warning(f"Slack delivery failed: {e!r}")
            return SendResult(ok=False, error=str(e))
        return SendResult(ok=True)
