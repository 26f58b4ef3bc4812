from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from pathlib import Path

import pytest
import pytest_asyncio

from dropbox_relay.api.http_client import AsyncHttpClient
from dropbox_relay.config import DropboxRelayConfig
from dropbox_relay.models.auth import AccessToken
from dropbox_relay.models.relay import StagedFile
from dropbox_relay.tests.utils.dropbox_fake import DropboxFakeTransport
from dropbox_relay.tests.utils.fake_clock import FIXED_NOW, FakeClock

CHUNK_SIZE = 100


@pytest.fixture
def config(tmp_path: Path) -> DropboxRelayConfig:
    return DropboxRelayConfig(
        app_key="app-key",
        app_secret="app-secret",
        refresh_token="refresh-credential",
        upload_path="/test",
        chunk_size=CHUNK_SIZE,
        staging_dir=tmp_path / "staging",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token() -> AccessToken:
    return AccessToken(token="sl.caller-token", expires_at=FIXED_NOW + timedelta(hours=4))


@pytest.fixture
def fake_dropbox() -> DropboxFakeTransport:
    return DropboxFakeTransport()


@pytest_asyncio.fixture
async def http(
    config: DropboxRelayConfig, fake_dropbox: DropboxFakeTransport
) -> AsyncIterator[AsyncHttpClient]:
    async with AsyncHttpClient(config, transport=fake_dropbox) as client:
        yield client


@pytest.fixture
def make_staged(tmp_path: Path) -> Callable[..., StagedFile]:
    uploads = tmp_path / "uploads"
    uploads.mkdir()

    def _make(name: str = "stem.wav", size: int = 10, content: bytes | None = None) -> StagedFile:
        data = content if content is not None else bytes(i % 251 for i in range(size))
        path = uploads / f"1760866200000_{name}"
        path.write_bytes(data)
        return StagedFile(path=path, original_name=name, size=len(data))

    return _make
