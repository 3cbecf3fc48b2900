"""Background status polling for provider tasks."""

import asyncio
from dataclasses import dataclass, field
from uuid import UUID

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.config import settings
from clipforge.domain.enums import TaskStatus
from clipforge.errors import MaterializationError, NotFoundError, ProviderError, TransportError
from clipforge.logging import bound_task, get_logger
from clipforge.services.materializer import ResultMaterializer
from clipforge.services.task_store import TaskStore

logger = get_logger(__name__)


@dataclass
class PollHandle:
    """Lifecycle handle of one task's polling loop."""

    task_id: UUID
    provider_task_id: str
    started_at: float
    ticks: int = 0
    cancelled: bool = False
    in_flight: bool = False
    runner: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.runner is None or self.runner.done()


class Poller:
    """Drives tasks from submission to a terminal status.

    Each task gets one loop on the running event loop: sleep, query the
    provider, write the observation, repeat until terminal. Observations for
    one task are strictly sequential. Loops are owned here and looked up by
    task id, so starting is idempotent and cancellation is central.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        store: TaskStore,
        materializer: ResultMaterializer,
        initial_delay: float | None = None,
        interval: float | None = None,
        max_duration: float | None = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.materializer = materializer
        self.initial_delay = (
            settings.poll_initial_delay_seconds if initial_delay is None else initial_delay
        )
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.max_duration = (
            settings.poll_max_duration_seconds if max_duration is None else max_duration
        )
        self._handles: dict[UUID, PollHandle] = {}

    def start(self, task_id: UUID, provider_task_id: str) -> PollHandle:
        """Start polling ``task_id``; a no-op if a loop for it is already running."""
        existing = self._handles.get(task_id)
        if existing is not None and not existing.done:
            logger.debug("poll_already_active", task_id=str(task_id))
            return existing

        loop = asyncio.get_running_loop()
        handle = PollHandle(
            task_id=task_id,
            provider_task_id=provider_task_id,
            started_at=loop.time(),
        )
        handle.runner = loop.create_task(self._run(handle), name=f"poll-{task_id}")
        handle.runner.add_done_callback(lambda _: self._finished(handle))
        self._handles[task_id] = handle

        logger.info(
            "poll_started",
            task_id=str(task_id),
            provider_task_id=provider_task_id,
        )
        return handle

    def get(self, task_id: UUID) -> PollHandle | None:
        return self._handles.get(task_id)

    def is_active(self, task_id: UUID) -> bool:
        handle = self._handles.get(task_id)
        return handle is not None and not handle.done

    @property
    def active_task_ids(self) -> list[UUID]:
        return [task_id for task_id, h in self._handles.items() if not h.done]

    async def cancel(self, task_id: UUID) -> bool:
        """Stop polling ``task_id`` and wait for the loop to wind down.

        A pending timer is cancelled outright. A tick that is mid-call is left
        to finish its network call but writes nothing afterwards. Once this
        returns, the loop performs no further writes.

        Returns:
            True if a running loop was cancelled
        """
        handle = self._handles.get(task_id)
        if handle is None or handle.done:
            return False

        handle.cancelled = True
        runner = handle.runner
        assert runner is not None
        if not handle.in_flight:
            runner.cancel()

        try:
            await asyncio.shield(runner)
        except asyncio.CancelledError:
            if not runner.cancelled():
                raise

        logger.info("poll_cancelled", task_id=str(task_id), ticks=handle.ticks)
        return True

    async def shutdown(self) -> None:
        """Cancel every running loop."""
        for task_id in self.active_task_ids:
            await self.cancel(task_id)

    def _finished(self, handle: PollHandle) -> None:
        if self._handles.get(handle.task_id) is handle:
            del self._handles[handle.task_id]

        runner = handle.runner
        if runner is not None and not runner.cancelled() and runner.exception() is not None:
            logger.error(
                "poll_loop_crashed",
                task_id=str(handle.task_id),
                error=str(runner.exception()),
            )

    async def _run(self, handle: PollHandle) -> None:
        with bound_task(handle.task_id, handle.provider_task_id):
            await self._loop(handle)

    async def _loop(self, handle: PollHandle) -> None:
        loop = asyncio.get_running_loop()
        delay = self.initial_delay

        while True:
            await asyncio.sleep(delay)
            if handle.cancelled:
                return

            if await self._tick(handle) or handle.cancelled:
                return

            if self.max_duration and loop.time() - handle.started_at >= self.max_duration:
                self.store.set_stalled(handle.task_id)
                logger.warning(
                    "poll_stalled",
                    ticks=handle.ticks,
                    max_duration=self.max_duration,
                )
                return

            delay = self.interval

    async def _tick(self, handle: PollHandle) -> bool:
        """Observe once. Returns True when the loop should stop."""
        handle.ticks += 1
        handle.in_flight = True
        try:
            observation = await self.provider.query_status(handle.provider_task_id)
        except (TransportError, ProviderError) as e:
            # Blips must not fail a job that is still running on the provider
            logger.warning(
                "poll_query_failed",
                tick=handle.ticks,
                error=str(e),
            )
            return False
        finally:
            handle.in_flight = False

        if handle.cancelled:
            return True

        try:
            task = self.store.record_observation(handle.task_id, observation)
        except NotFoundError:
            logger.info("poll_task_deleted")
            return True

        logger.debug(
            "poll_observed",
            status=task.status.value,
            progress=task.progress,
            tick=handle.ticks,
        )

        if not task.is_terminal:
            return False

        if task.status == TaskStatus.SUCCESS:
            logger.info("poll_task_succeeded", result_url=task.result_url)
            if task.result_url:
                try:
                    await self._materialize(handle, task.result_url)
                except NotFoundError:
                    logger.info("materialize_task_deleted")
        else:
            logger.info("poll_task_failed", reason=task.fail_message)
        return True

    async def _materialize(self, handle: PollHandle, result_url: str) -> None:
        handle.in_flight = True
        try:
            await self.materializer.materialize(handle.task_id, result_url)
        except MaterializationError as e:
            logger.warning("materialize_failed", error=str(e))
            self.store.set_warning(handle.task_id, f"Local copy unavailable: {e}")
        finally:
            handle.in_flight = False
