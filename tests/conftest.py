"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
_TEST_DIR = Path(tempfile.mkdtemp(prefix="clipforge-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'clipforge.db'}"
os.environ["MEDIA_ROOT"] = str(_TEST_DIR / "videos")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["COLUMNS"] = "200"
os.environ["GENERATION_PROVIDER"] = "stub"
os.environ["LLM_PROVIDER"] = "stub"
os.environ["POLL_INITIAL_DELAY_SECONDS"] = "0"
os.environ["POLL_INTERVAL_SECONDS"] = "0.01"

from clipforge.adapters.generation.base import GenerationProvider  # noqa: E402
from clipforge.adapters.llm.stub import StubLLMProvider  # noqa: E402
from clipforge.domain.enums import TaskKind, TaskStatus  # noqa: E402
from clipforge.domain.models import TaskObservation  # noqa: E402
from clipforge.services.coordinator import PipelineCoordinator  # noqa: E402
from clipforge.services.materializer import ResultMaterializer  # noqa: E402
from clipforge.services.poller import Poller  # noqa: E402
from clipforge.services.prompt_writer import PromptWriter  # noqa: E402
from clipforge.services.task_store import TaskStore  # noqa: E402

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42 fake video"


class ScriptedProvider(GenerationProvider):
    """Generation provider that replays scripted observations.

    ``scripts`` maps a job kind to the items replayed for each job of that
    kind, one per status query. An item is either a TaskObservation or an
    exception to raise; the last item repeats once the others are used up.
    Jobs without a script succeed on the first query.
    """

    def __init__(self) -> None:
        self.submitted: list[tuple[TaskKind, dict[str, Any]]] = []
        self.queries: list[str] = []
        self.scripts: dict[TaskKind, list[TaskObservation | Exception]] = {}
        self._jobs: dict[str, tuple[TaskKind, list[TaskObservation | Exception]]] = {}

    @property
    def name(self) -> str:
        return "scripted"

    async def submit_job(self, kind: TaskKind, parameters: dict[str, Any]) -> str:
        provider_task_id = f"prov-{len(self.submitted) + 1}"
        self.submitted.append((kind, parameters))
        self._jobs[provider_task_id] = (kind, list(self.scripts.get(kind, [])))
        return provider_task_id

    async def query_status(self, provider_task_id: str) -> TaskObservation:
        self.queries.append(provider_task_id)
        kind, script = self._jobs[provider_task_id]

        if not script:
            if kind == TaskKind.CHARACTER_CREATION:
                return TaskObservation(status=TaskStatus.SUCCESS, character_id="char_dad")
            return TaskObservation(status=TaskStatus.SUCCESS, result_urls=["https://cdn/x.mp4"])

        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, Exception):
            raise item
        return item


def video_download_handler(request: httpx.Request) -> httpx.Response:
    """Serve fake video bytes for any download."""
    return httpx.Response(200, content=VIDEO_BYTES, headers={"Content-Type": "video/mp4"})


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory over a private in-memory SQLite database."""
    from clipforge.db.models import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory: sessionmaker) -> TaskStore:
    """Task store backed by the in-memory database."""
    return TaskStore(session_factory=session_factory)


@pytest.fixture
def provider() -> ScriptedProvider:
    """Scripted generation provider."""
    return ScriptedProvider()


@pytest.fixture
def stub_llm() -> StubLLMProvider:
    """Get a stub LLM provider."""
    return StubLLMProvider()


@pytest.fixture
def materializer(store: TaskStore, tmp_path: Path) -> ResultMaterializer:
    """Materializer writing into a temporary media root."""
    return ResultMaterializer(
        store,
        media_root=tmp_path / "videos",
        url_prefix="/videos",
        transport=httpx.MockTransport(video_download_handler),
    )


@pytest.fixture
def make_poller(
    provider: ScriptedProvider,
    store: TaskStore,
    materializer: ResultMaterializer,
) -> Callable[..., Poller]:
    """Build a poller with test-friendly delays (overridable per test)."""

    def _make(**kwargs: Any) -> Poller:
        options: dict[str, Any] = {"initial_delay": 0, "interval": 0, "max_duration": 0}
        options.update(kwargs)
        return Poller(provider, store, materializer, **options)

    return _make


@pytest_asyncio.fixture
async def coordinator(
    store: TaskStore,
    provider: ScriptedProvider,
    stub_llm: StubLLMProvider,
    make_poller: Callable[..., Poller],
) -> AsyncGenerator[PipelineCoordinator, None]:
    """Pipeline coordinator over the scripted provider and stub LLM."""
    poller = make_poller()
    coordinator = PipelineCoordinator(
        store=store,
        provider=provider,
        writer=PromptWriter(stub_llm),
        poller=poller,
        clip_duration=15.0,
    )
    yield coordinator
    # Tests may swap in their own poller
    await coordinator.poller.shutdown()
    await poller.shutdown()


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app.

    Uses the stub providers from the environment, with downloads served by a
    mock transport so no test touches the network.
    """
    from clipforge.adapters.generation.stub import StubGenerationProvider
    from clipforge.db.session import init_db
    from clipforge.main import app

    init_db(create_tables=True)

    store = TaskStore()
    stub_provider = StubGenerationProvider()
    materializer = ResultMaterializer(
        store,
        transport=httpx.MockTransport(video_download_handler),
    )
    app.state.coordinator = PipelineCoordinator(
        store=store,
        provider=stub_provider,
        writer=PromptWriter(StubLLMProvider()),
        poller=Poller(stub_provider, store, materializer),
    )

    with TestClient(app) as client:
        yield client
