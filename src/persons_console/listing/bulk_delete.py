"""
Bulk Delete Orchestrator

Deletes the selected persons one at a time, in selection order.

The run is fail-fast and non-atomic: the first failed delete aborts the loop,
remaining ids are never attempted and earlier deletes are not rolled back.
Each run produces a per-id BulkDeleteReport so callers can tell which ids
were removed.
"""

from typing import Awaitable
from typing import Callable
from typing import List
from typing import Optional

from loguru import logger

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import InvalidTransitionError
from persons_console.errors import NetworkError
from persons_console.errors import PartialFailure
from persons_console.listing.selection import SelectionSet
from persons_console.schemas.enums import DeleteOutcomeStatus
from persons_console.schemas.enums import DeletePhase
from persons_console.schemas.schemas import BulkDeleteReport
from persons_console.schemas.schemas import DeleteOutcome

CompletionHook = Callable[[BulkDeleteReport], Awaitable[None]]


class BulkDeleteOrchestrator:
    """
    State machine: IDLE -> CONFIRMING -> DELETING -> IDLE.

    Args:
        api_client: persons API client used for the DELETE calls
        on_complete: awaited after every run (success or partial failure) with the run's report;
            the list controller uses it to clear the selection and refetch page 1
    """

    def __init__(self, api_client: PersonsApiClient, on_complete: Optional[CompletionHook] = None):
        self.api_client = api_client
        self.on_complete = on_complete
        self.phase = DeletePhase.IDLE
        self.last_report: Optional[BulkDeleteReport] = None

    def request_delete(self, selection: SelectionSet) -> DeletePhase:
        """Ask for confirmation; a no-op unless idle with a non-empty selection."""
        if self.phase is DeletePhase.IDLE and len(selection) > 0:
            self._set_phase(DeletePhase.CONFIRMING, selected=len(selection))
        else:
            logger.debug("Delete request ignored", phase=self.phase.value, selected=len(selection))
        return self.phase

    def cancel(self) -> DeletePhase:
        """Leave the confirmation step without deleting anything."""
        if self.phase is DeletePhase.DELETING:
            raise InvalidTransitionError("Cannot cancel a bulk delete that is already running")
        if self.phase is DeletePhase.CONFIRMING:
            self._set_phase(DeletePhase.IDLE)
        return self.phase

    async def execute(self, selection: SelectionSet) -> BulkDeleteReport:
        """
        Delete every selected id sequentially.

        Returns:
            Report in which every id is DELETED

        Raises:
            InvalidTransitionError: not in the confirmation step
            PartialFailure: a delete failed; the attached report lists DELETED, FAILED and NOT_ATTEMPTED ids
        """
        if self.phase is not DeletePhase.CONFIRMING:
            raise InvalidTransitionError(f"Bulk delete must be confirmed first (phase is {self.phase.value})")

        ids = list(selection.ids)
        self._set_phase(DeletePhase.DELETING, selected=len(ids))

        outcomes: List[DeleteOutcome] = []
        try:
            for person_id in ids:
                try:
                    await self.api_client.delete_person(person_id)
                except NetworkError as e:
                    logger.warning("Delete failed, aborting remaining deletes", person_id=person_id, error=str(e))
                    outcomes.append(
                        DeleteOutcome(person_id=person_id, status=DeleteOutcomeStatus.FAILED, reason=str(e))
                    )
                    break
                logger.debug("Person deleted", person_id=person_id)
                outcomes.append(DeleteOutcome(person_id=person_id, status=DeleteOutcomeStatus.DELETED))
        finally:
            outcomes.extend(
                DeleteOutcome(person_id=person_id, status=DeleteOutcomeStatus.NOT_ATTEMPTED)
                for person_id in ids[len(outcomes) :]
            )
            report = BulkDeleteReport(outcomes=outcomes)
            self.last_report = report
            self._set_phase(DeletePhase.IDLE)

        logger.info(
            "Bulk delete finished",
            deleted=len(report.deleted_ids),
            failed=len(report.failed_ids),
            not_attempted=len(report.not_attempted_ids),
        )

        if self.on_complete is not None:
            await self.on_complete(report)

        if not report.succeeded:
            raise PartialFailure(report)
        return report

    def _set_phase(self, phase: DeletePhase, **context) -> None:
        logger.debug(f"Bulk delete {self.phase.value} -> {phase.value}", **context)
        self.phase = phase
