import asyncio
import logging
import sys
from datetime import datetime, tzinfo
from typing import Awaitable, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from .auth_session import AuthSession
from .chargepoint_client import ChargePointClient
from .config import *
from .diff_engine import Notification, process_snapshot
from .notifier import SlackNotifier
from . import schedule
from .state_machine import MonitorState


class StationMonitor:
    """Poll one station's queue and notify occupants via Slack.

    Cycles run strictly one after another, so ``state`` is never touched by
    two polls at once.
    """

    def __init__(
        self,
        client: ChargePointClient,
        auth: AuthSession,
        notifier: SlackNotifier,
        device_id: str,
        user_ids: Dict[str, str],
        warning_offset: int = WARNING_OFFSET_SEC,
        polling_delay: float = POLLING_DELAY_SEC,
        work_start_hour: int = WORK_START_HOUR,
        work_end_hour: int = WORK_END_HOUR,
        off_hours_delay: float = OFF_HOURS_DELAY_SEC,
        weekend_delay: float = WEEKEND_DELAY_SEC,
        tz: Optional[tzinfo] = None,
        state: Optional[MonitorState] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.auth = auth
        self.notifier = notifier
        self.device_id = device_id
        self.user_ids = user_ids
        self.warning_offset = warning_offset
        self.polling_delay = polling_delay
        self.work_start_hour = work_start_hour
        self.work_end_hour = work_end_hour
        self.off_hours_delay = off_hours_delay
        self.weekend_delay = weekend_delay
        self.tz = tz
        self.state = state or MonitorState()
        self._sleep = sleep

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def gate(self, now: datetime) -> Optional[float]:
        """Sleep to use instead of polling at ``now``, or ``None`` when polling is due."""
        return schedule.off_hours_delay(
            now,
            self.work_start_hour,
            self.work_end_hour,
            self.off_hours_delay,
            self.weekend_delay,
        )

    async def poll_once(self) -> List[Notification]:
        token = await self.auth.ensure_token()
        snapshot = await self.client.get_station_queue_detail(self.device_id, token)
        notifications = process_snapshot(
            self.state, snapshot, self.user_ids, self.warning_offset, self.tz
        )
        if self.state.first_run:
            logging.info(
                f"Baseline snapshot for {self.device_id}: "
                f"{len(snapshot.charging_users)} charging, {len(snapshot.on_hold_users)} on hold"
            )
        self.state.first_run = False

        for n in notifications:
            result = await self.notifier.send(n.text)
            if result.ok:
                logging.info(f"Notified ({n.kind}, outlet={n.outlet}): {n.text}")
            else:
                logging.warning(f"Notification not delivered ({n.kind}, outlet={n.outlet}): {result.error}")
        return notifications

    async def run_cycle(self) -> float:
        """Run one gated poll and return the delay before the next one."""
        delay = self.gate(self.now())
        if delay is not None:
            logging.debug(f"Outside working hours, sleeping {delay}s")
            return delay
        try:
            await self.poll_once()
        except Exception as e:
            logging.error(f"Poll of station {self.device_id} failed: {e!r}")
        return self.polling_delay

    async def run(self, max_cycles: Optional[int] = None) -> None:
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            delay = await self.run_cycle()
            cycles += 1
            await self._sleep(delay)


def build_monitor() -> StationMonitor:
    tz = ZoneInfo(TIMEZONE) if TIMEZONE else None
    client = ChargePointClient(CP_BASE_URL, timeout=HTTP_TIMEOUT_SEC)
    auth = AuthSession(
        client,
        CP_USERNAME or "",
        CP_PASSWORD or "",
        refresh_interval=AUTH_DELAY_SEC,
    )
    notifier = SlackNotifier(SLACK_HOOK_URL, debug=DEBUG_MODE, timeout=HTTP_TIMEOUT_SEC)
    return StationMonitor(client, auth, notifier, CP_DEVICE_ID, SLACK_USER_IDS, tz=tz)


async def main() -> int:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    missing = missing_settings()
    if missing:
        logging.error(f"Missing required settings: {', '.join(missing)}")
        return 1

    monitor = build_monitor()
    logging.info(
        f"Watching station {CP_DEVICE_ID} every {POLLING_DELAY_SEC}s "
        f"({len(SLACK_USER_IDS)} Slack users mapped, debug={DEBUG_MODE})"
    )
    try:
        await monitor.run()
    finally:
        await monitor.client.aclose()
        await monitor.notifier.aclose()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass
