import json
from datetime import timezone
from urllib.parse import parse_qs

import httpx
import pytest

from cpn_monitor.state_machine import ChargingUser, OnHoldUser, Snapshot

BASE_URL = "https://cp.test"


def charging_entry(sub_id, name, outlet=1, state="CHARGING", plugin_ms=1_000_000):
    entry = {
        "subscriberEvatarName": name,
        "subscriberQueueState": state,
        "pluginEpochTime": str(plugin_ms),
        "outletNumber": outlet,
    }
    if sub_id is not None:
        entry["subscriberId"] = sub_id
    return entry


def on_hold_entry(sub_id, name, outlet=1, state="ACCEPT_PENDING"):
    entry = {
        "subscriberEvatarName": name,
        "portQueueSubState": state,
        "outletNumber": outlet,
    }
    if sub_id is not None:
        entry["subscriberId"] = sub_id
    return entry


def queue_body(charging=(), on_hold=(), max_charging_time=7200, curr_time=1000):
    return {
        "response": {
            "message": {
                "maxChargingTime": str(max_charging_time),
                "currTime": str(curr_time),
                "chargingUsers": list(charging),
                "onHoldUsers": list(on_hold),
            }
        }
    }


def snapshot(charging=(), on_hold=(), max_charging_time=7200, curr_time=1000):
    return Snapshot(
        max_charging_time=max_charging_time,
        curr_time=curr_time,
        charging_users=list(charging),
        on_hold_users=list(on_hold),
    )


def charging_user(sub_id, name, outlet=1, status="CHARGING", start_time=1000):
    return ChargingUser(id=sub_id, name=name, status=status, start_time=start_time, outlet=outlet)


def on_hold_user(sub_id, name, outlet=1, status="ACCEPT_PENDING"):
    return OnHoldUser(id=sub_id, name=name, status=status, outlet=outlet)


class FakeChargePoint:
    """In-memory stand-in for the ChargePoint endpoints, served over httpx.MockTransport."""

    def __init__(self, token="tok-1"):
        self.token = token
        self.queue = queue_body()
        self.validate_calls = []
        self.queue_calls = []
        self.fail_validate = False
        self.fail_queue_status = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        if request.url.path == "/users/validate":
            self.validate_calls.append(form)
            if self.fail_validate:
                return httpx.Response(401, json={"error": "bad credentials"})
            return httpx.Response(200, json={"sessionStorage": {"ci_ui_session": self.token}})
        if request.url.path == "/community/getStationQueueDetail":
            self.queue_calls.append({"form": form, "cookie": request.headers.get("cookie")})
            if self.fail_queue_status is not None:
                return httpx.Response(self.fail_queue_status, text="boom")
            return httpx.Response(200, content=json.dumps(self.queue))
        return httpx.Response(404)

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeSlack:
    def __init__(self, status_code=200):
        self.status_code = status_code
        self.messages = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.messages.append(json.loads(request.content)["text"])
        return httpx.Response(self.status_code, text="ok")

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_cp():
    return FakeChargePoint()


@pytest.fixture
def fake_slack():
    return FakeSlack()


@pytest.fixture
def utc():
    return timezone.utc
