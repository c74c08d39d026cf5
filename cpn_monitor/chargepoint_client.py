import logging
from typing import List, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .state_machine import ChargingUser, OnHoldUser, Snapshot

SESSION_COOKIE = "ci_ui_session"


class _SessionStorage(BaseModel):
    ci_ui_session: str


class ValidateResponse(BaseModel):
    session_storage: _SessionStorage = Field(alias="sessionStorage")

    model_config = ConfigDict(populate_by_name=True)


class ChargingUserPayload(BaseModel):
    subscriber_id: Optional[Union[int, str]] = Field(default=None, alias="subscriberId")
    name: Optional[str] = Field(default=None, alias="subscriberEvatarName")
    status: Optional[str] = Field(default=None, alias="subscriberQueueState")
    plugin_epoch_time: Optional[int] = Field(default=None, alias="pluginEpochTime")
    outlet: Optional[int] = Field(default=None, alias="outletNumber")

    model_config = ConfigDict(populate_by_name=True)

    def is_complete(self) -> bool:
        return (
            self.subscriber_id is not None
            and self.plugin_epoch_time is not None
            and self.outlet is not None
        )

    def to_user(self) -> ChargingUser:
        return ChargingUser(
            id=self.subscriber_id,  # type: ignore[arg-type]
            name=self.name or "",
            status=self.status or "",
            # pluginEpochTime is reported in milliseconds
            start_time=self.plugin_epoch_time / 1000,
            outlet=self.outlet,
        )


class OnHoldUserPayload(BaseModel):
    subscriber_id: Optional[Union[int, str]] = Field(default=None, alias="subscriberId")
    name: Optional[str] = Field(default=None, alias="subscriberEvatarName")
    status: Optional[str] = Field(default=None, alias="portQueueSubState")
    outlet: int = Field(alias="outletNumber")

    model_config = ConfigDict(populate_by_name=True)

    def to_user(self) -> OnHoldUser:
        return OnHoldUser(
            id=self.subscriber_id,
            name=self.name or "",
            status=self.status or "",
            outlet=self.outlet,
        )


class StationQueueDetail(BaseModel):
    max_charging_time: int = Field(alias="maxChargingTime")
    curr_time: int = Field(alias="currTime")
    charging_users: List[ChargingUserPayload] = Field(default_factory=list, alias="chargingUsers")
    on_hold_users: List[OnHoldUserPayload] = Field(default_factory=list, alias="onHoldUsers")

    model_config = ConfigDict(populate_by_name=True)

    def to_snapshot(self) -> Snapshot:
        charging = []
        for u in self.charging_users:
            if u.subscriber_id is None:
                continue
            if not u.is_complete():
                logging.warning(
                    f"Dropping charging entry for subscriber {u.subscriber_id}: "
                    f"missing pluginEpochTime or outletNumber"
                )
                continue
            charging.append(u.to_user())
        on_hold = []
        for u in self.on_hold_users:
            # unlike charging entries, on-hold entries are kept without an id
            if u.subscriber_id is None:
                logging.debug(f"On-hold entry without subscriberId on outlet {u.outlet}")
            on_hold.append(u.to_user())
        return Snapshot(
            max_charging_time=self.max_charging_time,
            curr_time=self.curr_time,
            charging_users=charging,
            on_hold_users=on_hold,
        )


class _QueueDetailResponse(BaseModel):
    message: StationQueueDetail


class _QueueDetailEnvelope(BaseModel):
    response: _QueueDetailResponse


class ChargePointClient:
    """Thin client for the ChargePoint community queue endpoints.

    Only the two calls needed to watch a station's waitlist are exposed:
    the credential exchange and the queue detail lookup.  Transport,
    HTTP status and payload validation errors are left to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "ChargePointClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post_form(self, path: str, form: dict, headers: Optional[dict] = None) -> dict:
        resp = await self._client.post(f"{self.base_url}{path}", data=form, headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def validate(self, username: str, password: str) -> str:
        """Exchange credentials for a session token."""
        body = await self._post_form(
            "/users/validate",
            {"user_name": username, "user_password": password},
        )
        return ValidateResponse.model_validate(body).session_storage.ci_ui_session

    async def get_station_queue_detail(self, device_id: str, token: str) -> Snapshot:
        """Return the current charging and on-hold occupants of a station."""
        body = await self._post_form(
            "/community/getStationQueueDetail",
            {"deviceId": device_id},
            headers={"cookie": f"{SESSION_COOKIE}={token};"},
        )
        detail = _QueueDetailEnvelope.model_validate(body).response.message
        return detail.to_snapshot()
