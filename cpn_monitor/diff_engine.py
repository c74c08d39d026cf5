"""Turn successive station snapshots into one-shot notifications.

Each outlet is tracked on two independent tracks: the occupant currently
charging and the occupant on hold.  An occupant is identified by its
subscriber id; a different id on an outlet means a new session and resets
that track's notification flag.  Flags are set as soon as a notification is
produced, whether or not it is later delivered.
"""
from dataclasses import dataclass
from datetime import tzinfo
from typing import Dict, List, Optional

from .notifier import mention
from .schedule import format_end_time
from .state_machine import ChargingUser, MonitorState, OnHoldUser, QueueState, Snapshot


class NotificationKind:
    SESSION_STARTED = "session_started"
    ALMOST_UP = "almost_up"
    YOUR_TURN = "your_turn"


@dataclass
class Notification:
    kind: str
    outlet: int
    text: str
    recipient: Optional[str] = None


def _process_charging(
    state: MonitorState,
    user: ChargingUser,
    snapshot: Snapshot,
    user_ids: Dict[str, str],
    warning_offset: int,
    tz: Optional[tzinfo],
) -> List[Notification]:
    out: List[Notification] = []
    current = state.get_charging(user.outlet)

    if current is None or current.id != user.id:
        current = state.replace_charging(user)
        if not state.first_run:
            end = format_end_time(current.end_time(snapshot.max_charging_time), tz)
            out.append(Notification(
                kind=NotificationKind.SESSION_STARTED,
                outlet=current.outlet,
                text=f"{current.name} has started charging. Their session will end at {end}.",
            ))

    recipient = user_ids.get(current.name)
    if (
        current.status == QueueState.CHARGING
        and recipient is not None
        and current.end_time(snapshot.max_charging_time) <= snapshot.curr_time + warning_offset
        and not current.exit_notified
    ):
        out.append(Notification(
            kind=NotificationKind.ALMOST_UP,
            outlet=current.outlet,
            text=f"{mention(recipient)} - Your time is almost up.",
            recipient=recipient,
        ))
        current.exit_notified = True
    return out


def _process_on_hold(
    state: MonitorState,
    user: OnHoldUser,
    user_ids: Dict[str, str],
) -> List[Notification]:
    current = state.get_on_hold(user.outlet)
    if current is None or current.id != user.id:
        current = state.replace_on_hold(user)

    recipient = user_ids.get(current.name)
    if (
        current.status == QueueState.ACCEPT_PENDING
        and recipient is not None
        and not current.waiting_notified
    ):
        current.waiting_notified = True
        return [Notification(
            kind=NotificationKind.YOUR_TURN,
            outlet=current.outlet,
            text=f"{mention(recipient)} -- It's your turn.",
            recipient=recipient,
        )]
    return []


def process_snapshot(
    state: MonitorState,
    snapshot: Snapshot,
    user_ids: Dict[str, str],
    warning_offset: int,
    tz: Optional[tzinfo] = None,
) -> List[Notification]:
    """Update ``state`` from ``snapshot`` and return the notifications to send.

    ``state.first_run`` only suppresses "session started" messages; it is
    left for the caller to clear once the snapshot has been handled.
    """
    notifications: List[Notification] = []
    for user in snapshot.charging_users:
        notifications.extend(
            _process_charging(state, user, snapshot, user_ids, warning_offset, tz)
        )
    for user in snapshot.on_hold_users:
        notifications.extend(_process_on_hold(state, user, user_ids))
    return notifications
