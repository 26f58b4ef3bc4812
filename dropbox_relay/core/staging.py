"""
Scoped cleanup of staged local files.

Every file written for a request (uploaded parts, the produced archive) is
registered with a StagingScope and removed when the scope exits, whichever
way it exits.
"""

from pathlib import Path
from types import TracebackType
from typing import Self

import structlog

logger = structlog.get_logger(__name__)


class StagingScope:
    """
    Context manager that deletes every registered path on exit.

    Deletion is best-effort: a file that cannot be removed is logged and
    skipped, and never masks the error that ended the scope.

    Example:
        ```python
        with StagingScope() as staging:
            staging.register(part.path)
            archive = staging.register(build_archive())
            ...
        # part.path and archive are gone here
        ```
    """

    def __init__(self) -> None:
        self._paths: list[Path] = []
        self._closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def register(self, path: Path | str) -> Path:
        """
        Register a path for removal when the scope ends.

        Args:
            path: Local file path.

        Returns:
            The path, as a Path, for chaining.
        """
        if self._closed:
            msg = "StagingScope already released"
            raise RuntimeError(msg)
        resolved = Path(path)
        if resolved not in self._paths:
            self._paths.append(resolved)
        return resolved

    def release(self) -> list[Path]:
        """
        Remove every registered path.

        Returns:
            Paths that could not be removed.
        """
        failed: list[Path] = []
        for path in self._paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(
                    "Failed to remove staged file",
                    path=str(path),
                    error_type=type(e).__name__,
                )
                failed.append(path)
        logger.debug("Staged files released", count=len(self._paths), failed=len(failed))
        self._paths = []
        self._closed = True
        return failed
