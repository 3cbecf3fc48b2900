"""Local persistence of finished provider results."""

from pathlib import Path
from uuid import UUID

import httpx

from clipforge.config import settings
from clipforge.errors import MaterializationError
from clipforge.logging import get_logger
from clipforge.services.task_store import TaskStore

logger = get_logger(__name__)


class ResultMaterializer:
    """Downloads a finished video and keeps a local copy keyed by task id.

    Provider URLs expire, so once a local copy exists it becomes the playback
    source. The local reference is ``{url_prefix}/{filename}``, served by the
    API from ``media_root``.
    """

    def __init__(
        self,
        store: TaskStore,
        media_root: Path | str | None = None,
        url_prefix: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.media_root = Path(media_root or settings.media_root)
        self.url_prefix = (url_prefix or settings.media_url_prefix).rstrip("/")
        self.timeout = timeout or settings.download_timeout_seconds
        self._transport = transport

    def filename_for(self, task_id: UUID, remote_url: str) -> str:
        return f"{task_id}{_guess_extension(remote_url)}"

    def local_reference(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    async def materialize(self, task_id: UUID, remote_url: str) -> str:
        """Fetch ``remote_url`` and record the local copy on the task.

        Returns:
            The local reference, distinct from the remote URL

        Raises:
            MaterializationError: The download or the local write failed
        """
        filename = self.filename_for(task_id, remote_url)
        file_path = self.media_root / filename

        # Files are write-once per task
        if file_path.exists():
            local_ref = self.local_reference(filename)
            self.store.set_local_path(task_id, local_ref)
            return local_ref

        logger.info(
            "materialize_started",
            task_id=str(task_id),
            url=remote_url[:100],
            destination=str(file_path),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(remote_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise MaterializationError(f"Failed to download {remote_url}: {e}") from e

        if not response.is_success:
            raise MaterializationError(
                f"Failed to download {remote_url}: HTTP {response.status_code}"
            )

        content = response.content
        tmp_path = file_path.with_name(file_path.name + ".part")
        try:
            self.media_root.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(content)
            tmp_path.replace(file_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise MaterializationError(f"Failed to write {file_path}: {e}") from e

        local_ref = self.local_reference(filename)
        self.store.set_local_path(task_id, local_ref)

        logger.info(
            "materialize_completed",
            task_id=str(task_id),
            local_path=local_ref,
            file_size=len(content),
        )
        return local_ref


def _guess_extension(url: str) -> str:
    """Guess file extension from URL, defaulting to mp4."""
    path = url.split("?")[0]
    last = path.rsplit("/", 1)[-1]
    if "." in last:
        ext = last.rsplit(".", 1)[-1].lower()
        if ext.isalnum() and len(ext) <= 5:
            return f".{ext}"
    return ".mp4"
