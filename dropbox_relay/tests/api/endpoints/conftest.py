from unittest.mock import Mock

import pytest

from dropbox_relay.config import DropboxRelayConfig


@pytest.fixture
def mock_http(config: DropboxRelayConfig) -> Mock:
    http = Mock()
    http.config = config
    return http
