from __future__ import annotations

from dataclasses import replace

import pytest

from imgix_automation.config import ConvergenceConfig
from imgix_automation.errors import ApiError, ApiErrorEntry, ConvergenceTimeoutError, InvalidSpecError
from imgix_automation.models import Source, SourceDeployment
from imgix_automation.schema import SourceSpec
from imgix_automation.service import DISABLED_NOT_DELETED, SourceService


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FakeClient:
    def __init__(self, statuses: list[str], create_failures: list[Exception] | None = None) -> None:
        self.statuses = list(statuses)
        self.create_failures = list(create_failures or [])
        self.calls: list[tuple[str, object]] = []
        self.remote: Source | None = None

    def create_source(self, source: Source) -> Source:
        self.calls.append(("create", source.name))
        if self.create_failures:
            raise self.create_failures.pop(0)
        self.remote = replace(source, id="server-id", deployment=replace(source.deployment, s3_secret_key=None))
        return replace(self.remote)

    def update_source(self, source: Source) -> Source:
        self.calls.append(("update", source.id))
        self.remote = replace(source, deployment=replace(source.deployment, s3_secret_key=None))
        return source

    def disable_source(self, source: Source) -> None:
        self.calls.append(("disable", source.id))
        source.enabled = False

    def get_source_by_id(self, source_id: str) -> Source:
        self.calls.append(("get", source_id))
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        base = self.remote or Source(
            id=source_id,
            name="existing",
            deployment=SourceDeployment(type="s3", imgix_subdomains=["existing"]),
        )
        return replace(base, id=source_id, deployment_status=status)


def _spec() -> SourceSpec:
    return SourceSpec.from_dict(
        {
            "name": "source1",
            "deployment": {
                "type": "s3",
                "imgix_subdomains": ["example-1"],
                "s3_access_key": "AKIA",
                "s3_secret_key": "secret",
                "s3_bucket": "bucket",
            },
        }
    )


def _service(client: FakeClient, clock: FakeClock, **settings: float) -> SourceService:
    return SourceService(client, ConvergenceConfig(**settings), sleep=clock.sleep, clock=clock)


def test_create_source_waits_for_deployment() -> None:
    client = FakeClient(["deploying", "deployed"])
    clock = FakeClock()

    source = _service(client, clock).create_source(_spec())

    assert source.id == "server-id"
    assert source.deployment_status == "deployed"
    assert source.deployment.s3_secret_key == "secret"
    assert client.calls == [("create", "source1"), ("get", "server-id"), ("get", "server-id")]
    assert clock.sleeps == [5.0, 10.0]


def test_create_source_retries_transient_access_key_error() -> None:
    transient = ApiError(entries=[ApiErrorEntry(status="400", title="aws_access_key", detail="not found")])
    client = FakeClient(["deployed"], create_failures=[transient, transient])
    clock = FakeClock()

    source = _service(client, clock).create_source(_spec())

    assert source.deployment_status == "deployed"
    assert [call for call in client.calls if call[0] == "create"] == [("create", "source1")] * 3
    assert clock.sleeps[:2] == [3.0, 3.0]


def test_create_source_does_not_retry_other_api_errors() -> None:
    rejected = ApiError(entries=[ApiErrorEntry(status="422", title="imgix_subdomains", detail="taken")])
    client = FakeClient(["deployed"], create_failures=[rejected])
    clock = FakeClock()

    with pytest.raises(ApiError) as excinfo:
        _service(client, clock).create_source(_spec())

    assert excinfo.value is rejected
    assert client.calls == [("create", "source1")]
    assert clock.sleeps == []


def test_create_source_times_out_while_deploying() -> None:
    client = FakeClient(["deploying"])
    clock = FakeClock()

    with pytest.raises(ConvergenceTimeoutError) as excinfo:
        _service(client, clock, create_timeout_seconds=20).create_source(_spec())

    assert excinfo.value.last_status == "deploying"
    assert excinfo.value.source_id == "server-id"


def test_read_source_fast_path_polls_once() -> None:
    client = FakeClient(["deploying"])
    clock = FakeClock()

    source = _service(client, clock).read_source("abc")

    assert source.deployment_status == "deploying"
    assert client.calls == [("get", "abc")]
    assert clock.sleeps == []


def test_read_source_slow_path_converges() -> None:
    client = FakeClient(["deploying", "deploying", "deployed"])
    clock = FakeClock()

    source = _service(client, clock).read_source("abc", wait_for_deployed=True)

    assert source.deployment_status == "deployed"
    assert client.calls == [("get", "abc")] * 3


def test_lookup_source_does_not_wait() -> None:
    client = FakeClient(["deploying"])
    clock = FakeClock()

    source = _service(client, clock).lookup_source("abc")

    assert source.id == "abc"
    assert clock.sleeps == []


def test_update_source_uses_given_id_and_converges() -> None:
    client = FakeClient(["deploying", "deployed"])
    clock = FakeClock()

    source = _service(client, clock).update_source("abc", _spec())

    assert source.id == "abc"
    assert source.name == "source1"
    assert source.deployment_status == "deployed"
    assert source.deployment.s3_secret_key == "secret"
    assert client.calls[0] == ("update", "abc")


def test_disable_source_returns_warning() -> None:
    client = FakeClient(["disabled"])
    clock = FakeClock()
    source = _spec().to_source("abc")

    outcome = _service(client, clock).disable_source(source)

    assert outcome.source is source
    assert source.enabled is False
    assert client.calls == [("disable", "abc")]
    assert len(outcome.diagnostics) == 1
    assert outcome.diagnostics[0].severity == "warning"
    assert outcome.diagnostics[0].summary == DISABLED_NOT_DELETED


def test_read_source_with_empty_id_is_rejected_before_polling() -> None:
    client = FakeClient(["deployed"])
    clock = FakeClock()

    with pytest.raises(InvalidSpecError):
        _service(client, clock).read_source("", wait_for_deployed=True)

    assert client.calls == []
    assert clock.sleeps == []
