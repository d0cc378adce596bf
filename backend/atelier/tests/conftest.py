from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from atelier.agent.artifacts import CompiledCollection, ImageAnalysis
from atelier.agent.gateway import ContentGateway
from atelier.auth import IdentityProvider
from atelier.core.db import init_db, make_engine
from atelier.errors import AuthenticationFailed
from atelier.main import create_app
from atelier.models import UserProfile
from atelier.store import DocumentStore

OWNER = UserProfile(id="owner-1", display_name="Ana Tattoo", email="ana@example.com")
STRANGER = UserProfile(id="stranger-2", display_name="Bruno")


def make_analysis(name: str = "Rosa Eterna", **overrides) -> ImageAnalysis:
    values = {
        "theme": "floral",
        "style": "fineline",
        "suggested_name": name,
        "description": "Uma rosa delicada em traço fino.",
        "seo_tags": ["rosa", "fineline"],
        "instagram_caption": "Delicadeza que fica.",
        "literal_meaning": "Uma rosa",
        "subjective_meaning": "Amor duradouro",
        "colors_used": ["preto"],
        "elements_present": ["rosa", "folhas"],
        "emotional_tone": "romântico",
        "suggested_placement": "antebraço",
        "symbolism": "amor",
        "cultural_reference": "",
    }
    values.update(overrides)
    return ImageAnalysis(**values)


def make_compiled() -> CompiledCollection:
    return CompiledCollection(
        pdf_data_uri="data:application/pdf;base64,JVBERi0=",
        web_version_url="https://example.com/colecoes/floral",
        mini_site_html="<html></html>",
        promotional_files=[],
        marketing_copies="Leve a delicadeza das flores para a pele.",
    )


class StaticIdentityProvider(IdentityProvider):
    def __init__(self, profiles: dict[str, UserProfile]):
        super().__init__()
        self.profiles = profiles

    async def fetch_profile(self, access_token: str) -> UserProfile:
        if access_token not in self.profiles:
            raise AuthenticationFailed("The identity provider rejected the credentials")
        return self.profiles[access_token]


class FakeUpload:
    def __init__(
        self, filename: str, content: bytes, content_type: str | None = "image/png", size: int | None = None
    ):
        self.filename = filename
        self.content_type = content_type
        self.size = size
        self._content = content
        self.bytes_read = 0

    async def read(self, size: int = -1) -> bytes:
        chunk = self._content if size < 0 else self._content[:size]
        self.bytes_read += len(chunk)
        return chunk


@pytest.fixture
def store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'atelier-test.db'}")
    init_db(engine)
    yield DocumentStore(engine)
    engine.dispose()


@pytest.fixture
def gateway():
    fake = MagicMock(spec=ContentGateway)
    fake.analyze_image = AsyncMock(return_value=make_analysis())
    fake.compile_collection = AsyncMock(return_value=make_compiled())
    fake.suggest_collection_metadata = AsyncMock()
    return fake


@pytest.fixture
def client(store, gateway):
    provider = StaticIdentityProvider({"owner-token": OWNER, "stranger-token": STRANGER})
    app = create_app(store=store, gateway=gateway, identity_provider=provider)
    with TestClient(app) as test_client:
        yield test_client


def sign_in(client: TestClient, provider_token: str) -> dict[str, str]:
    response = client.post("/api/login/provider", json={"access_token": provider_token})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def owner_headers(client):
    return sign_in(client, "owner-token")


@pytest.fixture
def stranger_headers(client):
    return sign_in(client, "stranger-token")
