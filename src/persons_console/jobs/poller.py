"""
Background Job Poller

Submits the statistics computation, polls its status until a terminal status is
observed, and guarantees the polling task is released on every exit path.
"""

import asyncio
from typing import Callable
from typing import Iterator
from typing import Optional

from loguru import logger
from pydantic import BaseModel
from pydantic import ConfigDict

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import JobFailure
from persons_console.errors import JobTimeoutError
from persons_console.errors import JobTransportError
from persons_console.errors import NetworkError
from persons_console.errors import PersonsConsoleError
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.schemas.enums import JobPhase
from persons_console.schemas.enums import TaskStatus
from persons_console.schemas.schemas import JobState
from persons_console.settings import Settings

JobListener = Callable[[JobState], None]


class PollPolicy(BaseModel):
    """Delay schedule of status queries: exponential backoff with a cap and an attempt budget."""

    model_config = ConfigDict(frozen=True)

    interval: float = 1.0
    backoff_factor: float = 1.5
    max_interval: float = 10.0
    max_attempts: int = 120

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        return cls(
            interval=settings.poll_interval_seconds,
            backoff_factor=settings.poll_backoff_factor,
            max_interval=settings.poll_max_interval_seconds,
            max_attempts=settings.poll_max_attempts,
        )

    def delays(self) -> Iterator[float]:
        """Delay to wait before each status query, one per allowed attempt."""
        delay = self.interval
        for _ in range(self.max_attempts):
            yield delay
            delay = min(delay * self.backoff_factor, self.max_interval)


class BackgroundJobPoller:
    """
    State machine: IDLE -> SUBMITTING -> POLLING -> {SUCCEEDED, FAILED, ERRORED} -> IDLE.

    Only one job is tracked at a time. Submitting a new job or calling reset()
    supersedes the current one: its polling task is cancelled and a generation
    token makes sure a late response can never overwrite the newer state.
    """

    def __init__(
        self,
        api_client: PersonsApiClient,
        policy: Optional[PollPolicy] = None,
        notifier: Optional[NotificationCenter] = None,
        on_change: Optional[JobListener] = None,
    ):
        self.api_client = api_client
        self.policy = policy or PollPolicy()
        self.notifier = notifier or NotificationCenter()
        self.on_change = on_change
        self.state = JobState()
        self.last_error: Optional[PersonsConsoleError] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_polling(self) -> bool:
        """True while a polling task is alive."""
        return self._task is not None and not self._task.done()

    async def submit(self) -> JobState:
        """
        Start a new statistics computation and begin polling it.

        Returns the state right after submission (POLLING, or ERRORED when the
        start request failed). Use wait() to block until a terminal state.
        """
        self._supersede()
        generation = self._generation
        self.last_error = None
        self._set_state(generation, JobState(phase=JobPhase.SUBMITTING))

        try:
            task_id = await self.api_client.start_stats()
        except NetworkError as e:
            if generation == self._generation:
                self.last_error = e
                self._set_state(generation, JobState(phase=JobPhase.ERRORED, error=str(e)))
                self.notifier.error("Error starting task.", error=str(e))
            return self.state

        if generation != self._generation:
            logger.debug("Statistics job superseded during submission", task_id=task_id)
            return self.state

        logger.info("Statistics job submitted", task_id=task_id)
        self._set_state(generation, JobState(phase=JobPhase.POLLING, task_id=task_id))
        task = asyncio.create_task(self._poll(task_id, generation), name=f"stats-poll-{task_id}")
        task.add_done_callback(self._release_task)
        self._task = task
        return self.state

    async def wait(self) -> JobState:
        """Wait for the current polling task (if any) to finish and return the resulting state."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.state

    def reset(self) -> None:
        """Cancel any in-flight polling and discard the job and its result."""
        self._supersede()
        self.last_error = None
        self._set_state(self._generation, JobState())

    async def aclose(self) -> None:
        """Cancel polling and wait until the task has actually stopped."""
        task = self._task
        self.reset()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _poll(self, task_id: str, generation: int) -> None:
        attempts = 0
        try:
            for delay in self.policy.delays():
                await asyncio.sleep(delay)
                if generation != self._generation:
                    return

                attempts += 1
                try:
                    response = await self.api_client.get_task_status(task_id)
                except NetworkError as e:
                    self._fail(
                        generation,
                        JobTransportError(task_id, f"Status query for task {task_id} failed: {e}"),
                        attempts,
                        "Lost track of the statistics task.",
                    )
                    return

                if generation != self._generation:
                    return

                if response.status == TaskStatus.SUCCESS.value:
                    logger.success("Statistics job succeeded", task_id=task_id, attempts=attempts)
                    self._set_state(
                        generation,
                        JobState(
                            phase=JobPhase.SUCCEEDED, task_id=task_id, result=response.result, attempts=attempts
                        ),
                    )
                    self.notifier.success("Report generated!", task_id=task_id)
                    return

                if response.status == TaskStatus.FAILURE.value:
                    self._fail(generation, JobFailure(task_id), attempts, "Task failed.", phase=JobPhase.FAILED)
                    return

                logger.debug("Statistics job still running", task_id=task_id, status=response.status)
                self._set_state(
                    generation, JobState(phase=JobPhase.POLLING, task_id=task_id, attempts=attempts)
                )

            self._fail(
                generation,
                JobTimeoutError(task_id, f"Task {task_id} did not finish after {attempts} status queries"),
                attempts,
                "Statistics task timed out.",
            )
        except asyncio.CancelledError:
            logger.debug("Statistics polling cancelled", task_id=task_id, attempts=attempts)
            raise

    def _fail(
        self,
        generation: int,
        error: PersonsConsoleError,
        attempts: int,
        message: str,
        phase: JobPhase = JobPhase.ERRORED,
    ) -> None:
        if generation != self._generation:
            return
        task_id = getattr(error, "task_id", None)
        logger.warning(f"Statistics job ended: {error}", task_id=task_id, phase=phase.value)
        self.last_error = error
        self._set_state(generation, JobState(phase=phase, task_id=task_id, error=str(error), attempts=attempts))
        self.notifier.error(message, task_id=task_id)

    def _supersede(self) -> None:
        self._generation += 1
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling in-flight statistics polling")
            self._task.cancel()
        self._task = None

    def _release_task(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None

    def _set_state(self, generation: int, state: JobState) -> None:
        if generation != self._generation:
            return
        self.state = state
        if self.on_change is not None:
            self.on_change(state)
