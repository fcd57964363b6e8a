import logging
import os
from typing import Optional

import httpx

from scene_analysis.config import Settings, get_settings
from scene_analysis.services.errors import FetchError
from scene_analysis.services.workspace import WorkspaceSession

logger = logging.getLogger(__name__)


class MediaFetcher:
    """Downloads a remote video into the run's workspace so later steps work on local bytes."""

    def __init__(self, client: Optional[httpx.Client] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        # Injected clients (tests) are owned by the caller.
        self._client = client

    def _new_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.settings.fetch.timeout_seconds,
            follow_redirects=True,
        )

    def fetch(self, video_url: str, session: WorkspaceSession, suffix: str = ".mp4") -> str:
        """
        Stream `video_url` to a new file in the session.

        Returns the local path. Raises FetchError on network failure, non-2xx
        status or oversize body; no file is left behind in that case.
        """
        logger.info(f"🎬 Downloading video: {video_url}")
        path = session.new_path("video", suffix)
        headers = {"User-Agent": self.settings.fetch.user_agent}
        max_bytes = int(self.settings.storage.max_video_size_gb * 1024 ** 3)

        client = self._client or self._new_client()
        try:
            with client.stream("GET", video_url, headers=headers) as response:
                if not response.is_success:
                    raise FetchError(
                        f"HTTP {response.status_code}: {response.reason_phrase}",
                        url=video_url,
                        status_code=response.status_code,
                    )
                written = 0
                with open(path, "wb") as fh:
                    for chunk in response.iter_bytes(self.settings.fetch.chunk_size):
                        written += len(chunk)
                        if written > max_bytes:
                            raise FetchError(
                                f"Video exceeds {self.settings.storage.max_video_size_gb}GB limit",
                                url=video_url,
                            )
                        fh.write(chunk)
        except FetchError:
            self._discard(path)
            raise
        except (httpx.HTTPError, OSError) as e:
            self._discard(path)
            raise FetchError(f"Failed to download video: {e}", url=video_url) from e
        finally:
            if self._client is None:
                client.close()

        logger.info(f"✅ Video downloaded to: {path} ({written / 1024 / 1024:.2f}MB)")
        return path

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            # The session will retry on cleanup.
            logger.warning(f"⚠️ Could not remove partial download {path}: {e}")
