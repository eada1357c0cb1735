import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.api.v1.deps import get_object_store, get_speech
from app.core import db as db_module
from app.core.security import hash_password
from app.main import app
from app.models.user import User
from app.services.asr_base import ChunkResult, ChunkTurn, SpeakerLabel
from app.services.asr_openai_adapter import OpenAIWhisperService
from app.services.conversation_gateway import ConversationGateway
from app.services.object_store import ObjectStore
from app.services.user_directory import generate_unique_invite_code


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


def _chunk(turns, s1_facts=(), s2_facts=(), summary="") -> ChunkResult:
    """Build a ChunkResult from (label, text) pairs"""
    return ChunkResult(
        transcript=[ChunkTurn(speaker=SpeakerLabel(label), text=text) for label, text in turns],
        facts_by_speaker={SpeakerLabel.S1: list(s1_facts), SpeakerLabel.S2: list(s2_facts)},
        summary=summary,
    )


class FakeSpeechService(OpenAIWhisperService):
    """
    Whisper service with canned per-chunk results instead of HTTP calls.
    batch_transcribe keeps the real aggregate -> map -> save behaviour.
    """

    def __init__(self, store: ObjectStore):
        super().__init__(store=store, gateway=ConversationGateway())
        self.results: dict[str, ChunkResult] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []

    def is_available(self) -> bool:
        return True

    async def transcribe_chunk_only(self, storage_ref: str) -> ChunkResult:
        self.calls.append(storage_ref)
        if storage_ref in self.failures:
            raise self.failures[storage_ref]
        return self.results[storage_ref]


@pytest.fixture
def make_chunk():
    return _chunk


@pytest_asyncio.fixture
async def db():
    """
    Fresh database without the HTTP client (service-level tests).
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def store(tmp_path):
    return ObjectStore(str(tmp_path / "storage"))


@pytest.fixture
def speech(store):
    return FakeSpeechService(store)


@pytest_asyncio.fixture
async def client(store, speech):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB,
    a temporary object store and the fake speech service.
    """
    await _init_test_db()
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_speech] = lambda: speech
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.clear()
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create users directly via ORM.
    """

    async def _create_user(password: str = "UserPass!23", name: str | None = None) -> tuple[User, str]:
        suffix = uuid.uuid4().hex[:6]
        user = await User.create(
            username=f"user_{suffix}",
            name=name,
            email=f"{suffix}@example.com",
            password_hash=hash_password(password),
            invite_code=await generate_unique_invite_code(),
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def upload(store):
    """
    Factory fixture storing audio bytes for a user, returns the storage id.
    """

    async def _upload(owner: User, data: bytes = b"fake-audio-bytes", content_type: str = "audio/m4a") -> str:
        obj = await store.put(str(owner.id), data, content_type)
        return str(obj.id)

    return _upload


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
