"""
List Controller

Composes the page fetcher, list parameters, selection set, bulk delete
orchestrator and statistics job poller, and exposes a single view model.

All list state lives in one frozen ControllerState that is only replaced through
_transition(). The controller runs on one asyncio event loop and takes no locks:
fetches, the delete loop and job polling may interleave, so every fetch carries a
generation number and responses from superseded fetches are dropped.
"""

import asyncio
from typing import Optional

from loguru import logger
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import NetworkError
from persons_console.errors import PartialFailure
from persons_console.jobs.poller import BackgroundJobPoller
from persons_console.jobs.poller import PollPolicy
from persons_console.listing.bulk_delete import BulkDeleteOrchestrator
from persons_console.listing.page_fetcher import PageFetcher
from persons_console.listing.page_fetcher import PageRequest
from persons_console.listing.parameters import ListParameters
from persons_console.listing.selection import SelectionSet
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.schemas.enums import SortField
from persons_console.schemas.schemas import BulkDeleteReport
from persons_console.schemas.schemas import FilterSpec
from persons_console.schemas.schemas import JobState
from persons_console.schemas.schemas import ListViewState
from persons_console.schemas.schemas import OrderSpec
from persons_console.schemas.schemas import Page
from persons_console.schemas.schemas import PersonId
from persons_console.settings import Settings


class ControllerState(BaseModel):
    """List-owned state; replaced as a whole on every transition."""

    model_config = ConfigDict(frozen=True)

    page: Page = Field(default_factory=Page)
    loading: bool = True
    filter: FilterSpec = Field(default_factory=FilterSpec)
    order: OrderSpec = Field(default_factory=OrderSpec)
    selection: SelectionSet = Field(default_factory=SelectionSet)
    job: JobState = Field(default_factory=JobState)
    refresh_signal: int = 0


def without_cursors(page: Page) -> Page:
    """Same rows, pagination cursors discarded."""
    return page.model_copy(update={"next_cursor": None, "previous_cursor": None})


class ListController:
    """
    Person list controller.

    Args:
        api_client: persons API client shared by every component
        notifier: toast collaborator; errors at operation boundaries end up here
        poll_policy: statistics polling schedule
        loading_delay: cosmetic delay (seconds) before the loading flag drops after a fetch
        initial_order: order used before the operator sorts anything
    """

    def __init__(
        self,
        api_client: PersonsApiClient,
        notifier: Optional[NotificationCenter] = None,
        poll_policy: Optional[PollPolicy] = None,
        loading_delay: float = 0.0,
        initial_order: Optional[OrderSpec] = None,
    ):
        self.api_client = api_client
        self.notifier = notifier or NotificationCenter()
        self.loading_delay = loading_delay

        self.page_fetcher = PageFetcher(api_client)
        self.parameters = ListParameters(order=initial_order)
        self.parameters.subscribe(self._on_parameters_changed)
        self.bulk_delete = BulkDeleteOrchestrator(api_client, on_complete=self._after_bulk_delete)
        self.job_poller = BackgroundJobPoller(
            api_client, policy=poll_policy, notifier=self.notifier, on_change=self._on_job_changed
        )

        self._state = ControllerState(filter=self.parameters.filter, order=self.parameters.order)
        self._generation = 0
        self._loading_timer: Optional[asyncio.TimerHandle] = None

    @classmethod
    def from_settings(
        cls, settings: Settings, api_client: PersonsApiClient, notifier: Optional[NotificationCenter] = None
    ) -> "ListController":
        return cls(
            api_client,
            notifier=notifier,
            poll_policy=PollPolicy.from_settings(settings),
            loading_delay=settings.loading_delay_seconds,
            initial_order=OrderSpec.from_ordering(settings.default_ordering),
        )

    @property
    def state(self) -> ControllerState:
        return self._state

    def view(self) -> ListViewState:
        """Project the current state into the view model."""
        state = self._state
        page = state.page
        return ListViewState(
            rows=page.items,
            total_count=page.total_count,
            loading=state.loading,
            next_cursor=page.next_cursor,
            previous_cursor=page.previous_cursor,
            can_go_next=page.next_cursor is not None and not state.loading,
            can_go_previous=page.previous_cursor is not None and not state.loading,
            filter=state.filter,
            order=state.order,
            selection=list(state.selection.ids),
            all_selected=state.selection.is_all_selected(page.ids),
            delete_phase=self.bulk_delete.phase,
            last_delete_report=self.bulk_delete.last_report,
            job=state.job,
            refresh_signal=state.refresh_signal,
        )

    # ── Fetching ────────────────────────────────────────────────────────────

    async def refresh(self) -> ListViewState:
        """Discard cursors and the job result, then fetch page 1 with the current parameters."""
        self.job_poller.reset()
        self._transition(page=without_cursors(self._state.page))
        await self._load(PageRequest.first_page(self._state.filter, self._state.order))
        return self.view()

    async def set_filter(self, spec: FilterSpec) -> ListViewState:
        self.parameters.set_filter(spec)
        return await self.refresh()

    async def set_order(self, field: SortField) -> ListViewState:
        self.parameters.set_order(field)
        return await self.refresh()

    async def bump_refresh_signal(self) -> ListViewState:
        """Outer refresh trigger, e.g. after the form saved a person. Clears the selection."""
        self._transition(refresh_signal=self._state.refresh_signal + 1, selection=SelectionSet())
        return await self.refresh()

    async def go_next(self) -> bool:
        """Fetch the next page; returns False when there is none or a fetch is in flight."""
        return await self._go(self._state.page.next_cursor, "next")

    async def go_previous(self) -> bool:
        """Fetch the previous page; returns False when there is none or a fetch is in flight."""
        return await self._go(self._state.page.previous_cursor, "previous")

    async def _go(self, cursor: Optional[str], direction: str) -> bool:
        if cursor is None or self._state.loading:
            logger.debug("Navigation ignored", direction=direction, has_cursor=cursor is not None)
            return False
        await self._load(PageRequest.at_cursor(cursor))
        return True

    async def _load(self, request: PageRequest) -> None:
        self._generation += 1
        generation = self._generation
        self._cancel_loading_timer()
        self._transition(loading=True)

        page: Optional[Page] = None
        try:
            page = await self.page_fetcher.fetch_page(request)
        except NetworkError as e:
            if generation == self._generation:
                # previous rows stay on screen
                self.notifier.error("Connection error.", error=str(e))
        finally:
            # loading must drop on every exit path of the current fetch
            if generation != self._generation:
                logger.debug("Discarding stale page response", generation=generation, current=self._generation)
            else:
                if page is not None:
                    self._transition(page=page)
                    logger.debug("Page loaded", rows=len(page.items), total_count=page.total_count)
                self._finish_loading(generation)

    def _finish_loading(self, generation: int) -> None:
        if self.loading_delay > 0:
            loop = asyncio.get_running_loop()
            self._loading_timer = loop.call_later(self.loading_delay, self._clear_loading, generation)
        else:
            self._clear_loading(generation)

    def _clear_loading(self, generation: int) -> None:
        self._loading_timer = None
        if generation == self._generation:
            self._transition(loading=False)

    def _cancel_loading_timer(self) -> None:
        if self._loading_timer is not None:
            self._loading_timer.cancel()
            self._loading_timer = None

    def _on_parameters_changed(self, filter: FilterSpec, order: OrderSpec) -> None:
        self._transition(filter=filter, order=order, page=without_cursors(self._state.page))

    # ── Selection ───────────────────────────────────────────────────────────

    def toggle_all(self, checked: bool) -> ListViewState:
        self._transition(selection=self._state.selection.toggle_all(self._state.page.ids, checked))
        return self.view()

    def toggle_one(self, person_id: PersonId) -> ListViewState:
        self._transition(selection=self._state.selection.toggle_one(person_id))
        return self.view()

    def clear_selection(self) -> ListViewState:
        self._transition(selection=self._state.selection.clear())
        return self.view()

    # ── Bulk delete ─────────────────────────────────────────────────────────

    def request_delete(self) -> ListViewState:
        self.bulk_delete.request_delete(self._state.selection)
        return self.view()

    def cancel_delete(self) -> ListViewState:
        self.bulk_delete.cancel()
        return self.view()

    async def execute_delete(self) -> BulkDeleteReport:
        """Run the confirmed bulk delete; failures are reported, never raised (except invalid transitions)."""
        try:
            report = await self.bulk_delete.execute(self._state.selection)
        except PartialFailure as e:
            report = e.report
            self.notifier.error(
                f"Error deleting items. {len(report.deleted_ids)} deleted, "
                f"{len(report.failed_ids)} failed, {len(report.not_attempted_ids)} not attempted.",
                failed_ids=report.failed_ids,
            )
            return report

        self.notifier.success("Items deleted successfully!", deleted=len(report.deleted_ids))
        return report

    async def _after_bulk_delete(self, report: BulkDeleteReport) -> None:
        # selection is cleared whatever the outcome
        self._transition(selection=SelectionSet())
        await self.refresh()

    # ── Statistics job ──────────────────────────────────────────────────────

    async def submit_stats(self) -> JobState:
        return await self.job_poller.submit()

    def dismiss_stats(self) -> ListViewState:
        self.job_poller.reset()
        return self.view()

    def _on_job_changed(self, job: JobState) -> None:
        self._transition(job=job)

    # ── Lifecycle ───────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Release the loading timer and the polling task."""
        self._cancel_loading_timer()
        await self.job_poller.aclose()
        logger.info("List controller closed")

    def _transition(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
