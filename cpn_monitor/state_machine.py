from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

SubscriberId = Union[int, str]


class QueueState:
    CHARGING = "CHARGING"
    ACCEPT_PENDING = "ACCEPT_PENDING"


@dataclass
class ChargingUser:
    """Occupant currently charging on an outlet."""

    id: SubscriberId
    name: str
    status: str
    start_time: float
    outlet: int
    exit_notified: bool = False

    def end_time(self, max_charging_time: int) -> float:
        return self.start_time + max_charging_time


@dataclass
class OnHoldUser:
    """Occupant waiting in the queue for an outlet."""

    id: Optional[SubscriberId]
    name: str
    status: str
    outlet: int
    waiting_notified: bool = False


@dataclass
class Snapshot:
    max_charging_time: int
    curr_time: int
    charging_users: List[ChargingUser] = field(default_factory=list)
    on_hold_users: List[OnHoldUser] = field(default_factory=list)


class MonitorState:
    def __init__(self):
        self.charging: Dict[int, ChargingUser] = {}
        self.on_hold: Dict[int, OnHoldUser] = {}
        # suppresses "session started" until the first snapshot has been diffed
        self.first_run = True

    def get_charging(self, outlet: int) -> Optional[ChargingUser]:
        return self.charging.get(outlet)

    def get_on_hold(self, outlet: int) -> Optional[OnHoldUser]:
        return self.on_hold.get(outlet)

    def replace_charging(self, user: ChargingUser) -> ChargingUser:
        """Store ``user`` as the outlet's occupant with fresh notification flags."""
        user.exit_notified = False
        self.charging[user.outlet] = user
        return user

    def replace_on_hold(self, user: OnHoldUser) -> OnHoldUser:
        user.waiting_notified = False
        self.on_hold[user.outlet] = user
        return user
