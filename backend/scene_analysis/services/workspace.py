import logging
import os
import threading
import time
import uuid
from functools import lru_cache
from typing import List, Optional

from scene_analysis.config import get_settings
from scene_analysis.services.errors import CleanupWarning

logger = logging.getLogger(__name__)


class TempWorkspace:
    """
    Shared scratch directory for in-flight runs.

    Concurrent runs never lock; they stay apart through run-unique file names.
    """

    def __init__(self, root: Optional[str] = None):
        self.root = root or get_settings().storage.temp_workspace_path
        os.makedirs(self.root, exist_ok=True)

    def session(self) -> "WorkspaceSession":
        return WorkspaceSession(self)

    def __repr__(self) -> str:
        return f"TempWorkspace({self.root!r})"


class WorkspaceSession:
    """
    Tracks every temp file one run creates and deletes them all on exit.

    Use as a context manager; cleanup runs whether the body returned or raised.
    """

    def __init__(self, workspace: TempWorkspace):
        self.workspace = workspace
        self.run_id = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        self._paths: List[str] = []
        self._lock = threading.Lock()
        self._counter = 0
        self._closed = False

    def __enter__(self) -> "WorkspaceSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.cleanup()
        return False

    @property
    def paths(self) -> List[str]:
        with self._lock:
            return list(self._paths)

    def new_path(self, prefix: str, suffix: str = "") -> str:
        """Allocate (and track) a unique file path inside the workspace."""
        with self._lock:
            self._counter += 1
            n = self._counter
        name = f"{prefix}_{self.run_id}_{n}{suffix}"
        return self.track(os.path.join(self.workspace.root, name))

    def track(self, path: str) -> str:
        with self._lock:
            if self._closed:
                raise RuntimeError("Workspace session already cleaned up")
            if path not in self._paths:
                self._paths.append(path)
        return path

    def cleanup(self) -> List[CleanupWarning]:
        """
        Delete every tracked file. Never raises.

        Returns one CleanupWarning per file that could not be deleted.
        """
        with self._lock:
            paths, self._paths = self._paths, []
            self._closed = True

        warnings: List[CleanupWarning] = []
        for path in paths:
            try:
                os.remove(path)
                logger.debug(f"🗑️ Cleaned up: {path}")
            except FileNotFoundError:
                continue
            except OSError as e:
                warning = CleanupWarning(path, e)
                warnings.append(warning)
                logger.warning(f"⚠️ {warning}")
        return warnings


@lru_cache()
def get_workspace() -> TempWorkspace:
    """Process-wide workspace, created on first use."""
    return TempWorkspace()
