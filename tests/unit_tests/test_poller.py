"""Unit tests for jobs/poller.py."""

import asyncio
from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import httpx
import pytest

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import JobFailure
from persons_console.errors import JobTimeoutError
from persons_console.errors import JobTransportError
from persons_console.jobs.poller import BackgroundJobPoller
from persons_console.jobs.poller import PollPolicy
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.schemas.enums import JobPhase
from persons_console.schemas.schemas import StatsSummary
from persons_console.schemas.schemas import TaskStatusResponse
from tests.consts import PERSONS_API_BASE_URL

FAST_POLICY = PollPolicy(interval=0, backoff_factor=1, max_interval=1, max_attempts=5)


@pytest.fixture
def notifier():
    return NotificationCenter()


@pytest.fixture
def poller(api_client, notifier):
    return BackgroundJobPoller(api_client, policy=FAST_POLICY, notifier=notifier)


def _messages(notifier):
    return [n.message for n in notifier.pending()]


class TestPollPolicy:
    """Tests for the delay schedule."""

    def test_exponential_backoff_with_cap(self):
        policy = PollPolicy(interval=1, backoff_factor=2, max_interval=5, max_attempts=5)

        assert list(policy.delays()) == [1, 2, 4, 5, 5]

    def test_constant_interval(self):
        policy = PollPolicy(interval=0.5, backoff_factor=1, max_interval=10, max_attempts=3)

        assert list(policy.delays()) == [0.5, 0.5, 0.5]

    def test_from_settings(self, mock_settings):
        policy = PollPolicy.from_settings(mock_settings)

        assert policy.interval == 0
        assert policy.max_attempts == 5


class TestTerminalStatuses:
    """Tests for how each task status ends (or continues) polling."""

    @pytest.mark.asyncio
    async def test_pending_then_success(self, poller, notifier, persons_backend):
        persons_backend.task_script = ["PENDING", "PENDING", "SUCCESS"]

        submitted = await poller.submit()
        state = await poller.wait()

        assert submitted.phase is JobPhase.POLLING
        assert submitted.task_id == "task-1"
        assert state.phase is JobPhase.SUCCEEDED
        assert state.result == StatsSummary(mean_age=34.8, stddev_age=13.9, total=5)
        assert state.attempts == 3
        assert len(persons_backend.status_calls()) == 3
        assert _messages(notifier) == ["Report generated!"]

    @pytest.mark.asyncio
    async def test_failure_stops_immediately(self, poller, notifier, persons_backend):
        persons_backend.task_script = ["FAILURE"]

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.FAILED
        assert state.result is None
        assert isinstance(poller.last_error, JobFailure)
        assert len(persons_backend.status_calls()) == 1
        assert _messages(notifier) == ["Task failed."]

    @pytest.mark.asyncio
    async def test_unknown_status_treated_as_pending(self, poller, persons_backend):
        persons_backend.task_script = ["STARTED", "RETRY", "SUCCESS"]

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.SUCCEEDED
        assert len(persons_backend.status_calls()) == 3

    @pytest.mark.asyncio
    async def test_transport_error_is_surfaced(self, poller, notifier, persons_backend):
        persons_backend.task_script = ["PENDING", "ERROR"]

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.ERRORED
        assert isinstance(poller.last_error, JobTransportError)
        assert not isinstance(poller.last_error, JobTimeoutError)
        assert _messages(notifier) == ["Lost track of the statistics task."]
        assert not poller.is_polling

    @pytest.mark.asyncio
    async def test_attempt_budget_exhausted(self, api_client, notifier, persons_backend):
        persons_backend.task_script = ["PENDING"]
        poller = BackgroundJobPoller(
            api_client, policy=PollPolicy(interval=0, backoff_factor=1, max_attempts=3), notifier=notifier
        )

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.ERRORED
        assert state.attempts == 3
        assert isinstance(poller.last_error, JobTimeoutError)
        assert len(persons_backend.status_calls()) == 3
        assert _messages(notifier) == ["Statistics task timed out."]


class TestSubmission:
    """Tests for submitting and superseding jobs."""

    @pytest.mark.asyncio
    async def test_start_failure(self, poller, notifier, persons_backend):
        persons_backend.offline = True

        state = await poller.submit()

        assert state.phase is JobPhase.ERRORED
        assert state.task_id is None
        assert not poller.is_polling
        assert _messages(notifier) == ["Error starting task."]

    @pytest.mark.asyncio
    async def test_phase_sequence_reported(self, api_client, persons_backend):
        persons_backend.task_script = ["PENDING", "SUCCESS"]
        phases = []
        poller = BackgroundJobPoller(api_client, policy=FAST_POLICY, on_change=lambda s: phases.append(s.phase))

        await poller.submit()
        await poller.wait()

        assert phases == [JobPhase.SUBMITTING, JobPhase.POLLING, JobPhase.POLLING, JobPhase.SUCCEEDED]

    @pytest.mark.asyncio
    async def test_resubmit_supersedes_running_job(self, poller, persons_backend):
        persons_backend.task_script = ["PENDING", "PENDING", "SUCCESS"]

        await poller.submit()
        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.SUCCEEDED
        assert state.task_id == "task-2"


class TestReset:
    """Tests for cancelling polling."""

    @pytest.mark.asyncio
    async def test_late_result_after_reset_is_ignored(self, notifier):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_status(task_id):
            started.set()
            await release.wait()
            return TaskStatusResponse(status="SUCCESS", result=StatsSummary(total=1))

        api_client = MagicMock()
        api_client.start_stats = AsyncMock(return_value="task-1")
        api_client.get_task_status = slow_status
        poller = BackgroundJobPoller(api_client, policy=FAST_POLICY, notifier=notifier)

        await poller.submit()
        await started.wait()
        poller.reset()
        release.set()
        await asyncio.sleep(0)

        assert poller.state.phase is JobPhase.IDLE
        assert poller.state.result is None
        assert not poller.is_polling
        assert _messages(notifier) == []

    @pytest.mark.asyncio
    async def test_reset_clears_result(self, poller, persons_backend):
        await poller.submit()
        await poller.wait()

        poller.reset()

        assert poller.state.phase is JobPhase.IDLE
        assert poller.state.result is None

    @pytest.mark.asyncio
    async def test_aclose_waits_for_task(self, api_client, persons_backend, mock_logger):
        persons_backend.task_script = ["PENDING"]
        poller = BackgroundJobPoller(api_client, policy=PollPolicy(interval=10, max_attempts=3))

        await poller.submit()
        await asyncio.sleep(0)
        await poller.aclose()

        assert not poller.is_polling
        assert persons_backend.status_calls() == []
        mock_logger["poller"].debug.assert_any_call("Statistics polling cancelled", task_id="task-1", attempts=0)


def _client_serving(status_payload: dict) -> PersonsApiClient:
    """Persons API client whose long-task endpoint always answers `status_payload`."""

    def handler(request):
        if request.url.path.endswith("/calculate-stats/"):
            return httpx.Response(200, json={"task_id": "task-1"})
        return httpx.Response(200, json=status_payload)

    return PersonsApiClient(base_url=PERSONS_API_BASE_URL, transport=httpx.MockTransport(handler))


class TestUnexpectedStatusPayloads:
    """Tests that odd status payloads still end the job with a visible outcome."""

    @pytest.mark.asyncio
    async def test_failure_with_error_string_result(self, notifier):
        api_client = _client_serving({"status": "FAILURE", "result": "ZeroDivisionError('division by zero')"})
        poller = BackgroundJobPoller(api_client, policy=FAST_POLICY, notifier=notifier)

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.FAILED
        assert state.result is None
        assert isinstance(poller.last_error, JobFailure)
        assert _messages(notifier) == ["Task failed."]

    @pytest.mark.asyncio
    async def test_payload_without_status(self, notifier):
        poller = BackgroundJobPoller(_client_serving({"detail": "Not ready"}), policy=FAST_POLICY, notifier=notifier)

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.ERRORED
        assert isinstance(poller.last_error, JobTransportError)
        assert not poller.is_polling
        assert _messages(notifier) == ["Lost track of the statistics task."]

    @pytest.mark.asyncio
    async def test_success_with_malformed_result(self, notifier):
        api_client = _client_serving({"status": "SUCCESS", "result": {"total": "many"}})
        poller = BackgroundJobPoller(api_client, policy=FAST_POLICY, notifier=notifier)

        await poller.submit()
        state = await poller.wait()

        assert state.phase is JobPhase.ERRORED
        assert state.result is None
        assert _messages(notifier) == ["Lost track of the statistics task."]
