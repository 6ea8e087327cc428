import pytest
from fastapi.testclient import TestClient


class FakeGateway:
    """Scriptable NetworkGateway. Set *_error to raise instead of returning."""

    def __init__(self) -> None:
        self.valid = True
        self.validate_error: Exception | None = None
        self.attribution: dict[str, str] = {}
        self.attribution_error: Exception | None = None
        self.destination = "https://example.com/dest"
        self.destination_error: Exception | None = None
        self.calls: list[str] = []
        self.destination_requests: list[dict[str, str]] = []

    async def validate(self) -> bool:
        self.calls.append("validate")
        if self.validate_error:
            raise self.validate_error
        return self.valid

    async def fetch_attribution(self) -> dict[str, str]:
        self.calls.append("fetch_attribution")
        if self.attribution_error:
            raise self.attribution_error
        return dict(self.attribution)

    async def fetch_destination(self, attribution: dict[str, str]) -> str:
        self.calls.append("fetch_destination")
        self.destination_requests.append(dict(attribution))
        if self.destination_error:
            raise self.destination_error
        return self.destination


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def store():
    from launch_router.services.store import MemoryStore

    return MemoryStore()


@pytest.fixture()
def client(tmp_path, monkeypatch):
    # Persisted state goes to a temp data dir
    monkeypatch.setenv("LAUNCH_DATA_DIR", str(tmp_path))
    from launch_router.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def api(client, store, gateway, sleeps):
    """Client whose orchestrator runs on an in-memory store and the fake gateway."""
    from launch_router.pipeline import PipelineEngine, build_default_steps
    from launch_router.services.launcher import LaunchOrchestrator

    orchestrator = LaunchOrchestrator(
        store,
        gateway,
        engine_factory=lambda: PipelineEngine(build_default_steps(store, gateway, sleep=sleeps)),
        debounce_seconds=0.05,
    )
    client.app.state.orchestrator = orchestrator
    return client
