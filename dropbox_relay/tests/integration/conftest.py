import os

import pytest

from dropbox_relay.config import DropboxRelayConfig

REQUIRED_ENV = ("DROPBOX_APP_KEY", "DROPBOX_APP_SECRET", "DROPBOX_REFRESH_TOKEN")


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    missing = not all(os.getenv(name) for name in REQUIRED_ENV)
    if not missing:
        return
    mark_expr = getattr(config.option, "markexpr", "")
    if "integration" in mark_expr:
        return
    skip = pytest.mark.skip(reason="Dropbox credentials not set: " + ", ".join(REQUIRED_ENV))
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip)


@pytest.fixture(scope="session")
def dropbox_config() -> DropboxRelayConfig:
    if not all(os.getenv(name) for name in REQUIRED_ENV):
        pytest.fail(
            "DROPBOX_APP_KEY, DROPBOX_APP_SECRET and DROPBOX_REFRESH_TOKEN must be set "
            "to run integration tests."
        )
    return DropboxRelayConfig.from_env(
        upload_path=os.getenv("DROPBOX_TEST_UPLOAD_PATH", "/dropbox-relay-tests"),
        chunk_size=4 * 1024 * 1024,
    )
