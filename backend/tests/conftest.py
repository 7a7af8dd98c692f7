"""
Shared pytest fixtures and configuration for all tests
"""
import base64
import pytest
import sys
from pathlib import Path

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Smallest useful PNG signature; the app never decodes pixels
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


class FakeProvider:
    """Records calls and answers with a canned data URL or error"""

    def __init__(self, result="data:image/png;base64,RESULT", error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def edit(self, image, prompt):
        self.calls.append((image, prompt))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def png_bytes():
    return PNG_BYTES

@pytest.fixture
def png_asset():
    """Provide an encoded PNG source image"""
    from services.image_encoder import encode_bytes
    return encode_bytes(PNG_BYTES, "image/png")

@pytest.fixture
def result_data_url():
    return "data:image/png;base64," + base64.b64encode(b"edited-bytes").decode("ascii")

@pytest.fixture
def fake_provider(result_data_url):
    return FakeProvider(result=result_data_url)

@pytest.fixture
def session_store():
    """Provide an isolated in-memory session store"""
    from core.session_store import SessionStore
    return SessionStore(max_size=10, ttl_seconds=60)

@pytest.fixture
def editor_service(fake_provider, session_store):
    from services.editor_service import EditorService
    return EditorService(fake_provider, store=session_store)
