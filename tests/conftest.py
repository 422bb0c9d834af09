"""
Shared fixtures: in-memory store, mocked OpenAI client, real PNG bytes.
No network and no Supabase.
"""
import io
import os
import sys
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from PIL import Image

# Keep a developer .env from switching the tests onto real services
for _var in ("OPENAI_API_KEY", "SUPABASE_URL", "SUPABASE_KEY"):
    os.environ[_var] = ""
os.environ["SEED_ON_STARTUP"] = "0"
os.environ["BCRYPT_ROUNDS"] = "4"

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from turmeric_care import dependencies
from turmeric_care.services.disease_catalog import seed_diseases
from turmeric_care.services.storage import MemoryStore
from turmeric_care.utils.rate_limiter import limiter
from turmeric_care.utils.upload import to_data_url


def completion(content):
    """Shape of an openai ChatCompletion as far as the services read it"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_openai_client(*replies):
    """Client whose chat.completions.create returns/raises ``replies`` in order"""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[
        reply if isinstance(reply, Exception) else completion(reply)
        for reply in replies
    ])
    return client


LEAF_SPOT_REPLY = """Here is my assessment:
```json
{
  "detectedDisease": "Leaf Spot Disease",
  "confidence": 87,
  "severity": "moderate",
  "symptoms": ["Brown spots with yellow halo", "Spots on older leaves"],
  "summary": "Several dark lesions scattered across the blade."
}
```"""


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def seeded_store(store):
    seed_diseases(store)
    return store


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 12), (46, 160, 67)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return to_data_url("image/png", png_bytes)


@pytest.fixture
def app_client(seeded_store):
    """TestClient wired to a fresh seeded memory store; OpenAI patched per test via ``openai``"""
    from fastapi.testclient import TestClient
    from turmeric_care.main import app

    limiter.enabled = False
    with patch.object(dependencies, "store", seeded_store), \
            patch.object(dependencies, "openai_client", None):
        yield TestClient(app)
    limiter.enabled = True


@pytest.fixture
def use_openai():
    """Install a mocked OpenAI client for the duration of a test"""
    patchers = []

    def _install(*replies):
        client = make_openai_client(*replies)
        patcher = patch.object(dependencies, "openai_client", client)
        patcher.start()
        patchers.append(patcher)
        return client

    yield _install
    for patcher in reversed(patchers):
        patcher.stop()
