"""
Dropbox relay configuration.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

MIB = 1024 * 1024
GIB = 1024 * MIB

# Dropbox rejects a single upload or append body larger than this.
MAX_REQUEST_BODY = 150 * MIB


def _default_staging_dir() -> Path:
    return Path(tempfile.gettempdir()) / "dropbox-relay"


@dataclass(frozen=True, kw_only=True)
class DropboxRelayConfig:
    """
    Attributes:
        app_key: Dropbox application key (OAuth client_id).
        app_secret: Dropbox application secret (OAuth client_secret).
        refresh_token: Long-lived refresh token used to mint access tokens.
        upload_path: Remote folder archives are written to.
        chunk_size: Size threshold and chunk length for session uploads, in bytes.
        compression_level: Deflate level used when packing the archive (0-9).
        timeout: Read/write timeout for a single API call in seconds.
        connect_timeout: Connection timeout in seconds.
        api_url: Base URL for Dropbox RPC endpoints.
        content_url: Base URL for Dropbox content-upload endpoints.
        token_url: OAuth token endpoint.
        user_agent: User-Agent header value.
        staging_dir: Local directory for produced archives.
        manifest_name: Name of the metadata entry inside the archive.
        missing_field_placeholder: Text substituted for empty form fields in the manifest.
        max_files: Maximum number of file parts accepted per request.
        max_file_size: Maximum size of a single file part in bytes.
    """

    app_key: str = ""
    app_secret: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)
    upload_path: str = "/uploads"
    chunk_size: int = 100 * MIB
    compression_level: int = 6
    timeout: float = 1200.0
    connect_timeout: float = 30.0
    api_url: str = "https://api.dropboxapi.com"
    content_url: str = "https://content.dropboxapi.com"
    token_url: str = "https://api.dropbox.com/oauth2/token"
    user_agent: str = "DropboxRelay-Python/1.0"
    staging_dir: Path = field(default_factory=_default_staging_dir)
    manifest_name: str = "informations.txt"
    missing_field_placeholder: str = "unknown"
    max_files: int = 50
    max_file_size: int = 3 * GIB

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            msg = "chunk_size must be positive"
            raise ValueError(msg)
        if self.chunk_size > MAX_REQUEST_BODY:
            msg = f"chunk_size must not exceed {MAX_REQUEST_BODY} bytes"
            raise ValueError(msg)
        if not 0 <= self.compression_level <= 9:
            msg = "compression_level must be between 0 and 9"
            raise ValueError(msg)
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if self.connect_timeout <= 0:
            msg = "connect_timeout must be positive"
            raise ValueError(msg)
        if not self.upload_path.startswith("/"):
            msg = "upload_path must be absolute (start with '/')"
            raise ValueError(msg)
        if not self.manifest_name:
            msg = "manifest_name must not be empty"
            raise ValueError(msg)
        if self.max_files <= 0:
            msg = "max_files must be positive"
            raise ValueError(msg)
        if self.max_file_size <= 0:
            msg = "max_file_size must be positive"
            raise ValueError(msg)

    @property
    def has_credentials(self) -> bool:
        """Check if every OAuth credential is set."""
        return bool(self.app_key and self.app_secret and self.refresh_token)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: object) -> Self:
        """
        Build a configuration from ``DROPBOX_*`` environment variables.

        Recognized variables: DROPBOX_APP_KEY, DROPBOX_APP_SECRET,
        DROPBOX_REFRESH_TOKEN, DROPBOX_UPLOAD_PATH, DROPBOX_CHUNK_SIZE,
        DROPBOX_COMPRESSION_LEVEL, DROPBOX_TIMEOUT, DROPBOX_STAGING_DIR.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            **overrides: Explicit values taking precedence over the environment.

        Returns:
            Validated configuration.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "app_key": env.get("DROPBOX_APP_KEY", ""),
            "app_secret": env.get("DROPBOX_APP_SECRET", ""),
            "refresh_token": env.get("DROPBOX_REFRESH_TOKEN", ""),
        }
        if upload_path := env.get("DROPBOX_UPLOAD_PATH"):
            values["upload_path"] = upload_path
        if chunk_size := env.get("DROPBOX_CHUNK_SIZE"):
            values["chunk_size"] = int(chunk_size)
        if compression_level := env.get("DROPBOX_COMPRESSION_LEVEL"):
            values["compression_level"] = int(compression_level)
        if timeout := env.get("DROPBOX_TIMEOUT"):
            values["timeout"] = float(timeout)
        if staging_dir := env.get("DROPBOX_STAGING_DIR"):
            values["staging_dir"] = Path(staging_dir)
        values.update(overrides)
        return cls(**values)
