"""
Cancellable loader for form versions.

At most one fetch is in flight. Requesting a different version cancels
the previous fetch, and closing the loader cancels whatever is pending.
A cancelled fetch is not an error: it leaves the load state untouched.
"""

import asyncio
import logging

from dynaform.client.api_client import FormApiClient
from dynaform.core.errors import FormLoadError
from dynaform.core.schema import FormVersion

logger = logging.getLogger(__name__)


class FormLoader:
    """Tracks loading, loaded and error states for one consumer.

    Args:
        client: The API client used to fetch versions.
    """

    def __init__(self, client: FormApiClient):
        self._client = client
        self._task: asyncio.Task | None = None
        self._version_id: int | str | None = None

        self.version: FormVersion | None = None
        self.loading = False
        self.error: str | None = None
        self.status_code: int | None = None

    @property
    def version_id(self) -> int | str | None:
        return self._version_id

    async def load(self, version_id: int | str) -> FormVersion | None:
        """Fetch a version, superseding any fetch for another version.

        Returns:
            The loaded version, or None if the fetch failed or was cancelled.
        """
        task = self._task
        if task is not None and not task.done():
            if self._version_id == version_id:
                return await self._settle(task, version_id)
            logger.info(
                "Cancelling load of form version %s in favor of %s",
                self._version_id,
                version_id,
            )
            task.cancel()

        self._version_id = version_id
        self.loading = True
        self.error = None
        self.status_code = None
        self._task = asyncio.create_task(self._client.fetch_form_version(version_id))
        return await self._settle(self._task, version_id)

    async def retry(self) -> FormVersion | None:
        """Fetch the last requested version again."""
        if self._version_id is None:
            return None
        return await self.load(self._version_id)

    async def close(self) -> None:
        """Cancel any in-flight fetch."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self.loading = False

    async def _settle(self, task: asyncio.Task, version_id: int | str) -> FormVersion | None:
        await asyncio.wait({task})

        if task.cancelled():
            logger.debug("Load of form version %s was cancelled", version_id)
            return None

        # A newer request owns the load state now
        if task is not self._task:
            return None

        self.loading = False
        exc = task.exception()
        if exc is not None:
            if not isinstance(exc, FormLoadError):
                raise exc
            logger.warning("Failed to load form version %s: %s", version_id, exc.message)
            self.version = None
            self.error = exc.message
            self.status_code = exc.status_code
            return None

        self.version = task.result()
        return self.version
