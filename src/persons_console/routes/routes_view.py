"""
List View API Routes

Endpoints the presentation layer calls to read the person list view model
and to send the operator's commands (filter, sort, paginate, select, delete,
statistics). Every command answers with the updated view model.
"""

from fastapi import APIRouter
from fastapi import Depends
from fastapi import status
from loguru import logger

from persons_console.dependencies import get_controller
from persons_console.listing.controller import ListController
from persons_console.schemas.enums import SortField
from persons_console.schemas.schemas import BulkDeleteReport
from persons_console.schemas.schemas import FilterSpec
from persons_console.schemas.schemas import JobState
from persons_console.schemas.schemas import ListViewState
from persons_console.schemas.schemas import ToggleAllRequest
from persons_console.schemas.schemas import parse_person_id

ROUTER_VIEW = APIRouter(tags=["List View"], prefix="/view")

INVALID_TRANSITION_RESPONSE = {
    status.HTTP_409_CONFLICT: {
        "description": "Command not allowed in the current bulk delete phase",
        "content": {"application/json": {"example": {"detail": "Bulk delete must be confirmed first (phase is IDLE)"}}},
    },
}


# read (cRud)
@ROUTER_VIEW.get("", response_model=ListViewState, summary="Current list view model")
async def get_view(controller: ListController = Depends(get_controller)) -> ListViewState:
    """Rows, pagination state, parameters, selection, delete phase and job state."""
    return controller.view()


@ROUTER_VIEW.post("/refresh", response_model=ListViewState, summary="Reload page 1")
async def refresh_view(controller: ListController = Depends(get_controller)) -> ListViewState:
    """Discard cursors and the statistics result, then fetch page 1."""
    return await controller.refresh()


@ROUTER_VIEW.put("/filter", response_model=ListViewState, summary="Set the creation date filter")
async def set_filter(spec: FilterSpec, controller: ListController = Depends(get_controller)) -> ListViewState:
    """Replace the filter; always restarts from page 1."""
    logger.info("Filter requested", start_date=spec.start_date, end_date=spec.end_date)
    return await controller.set_filter(spec)


@ROUTER_VIEW.post("/order/{field}", response_model=ListViewState, summary="Sort by a column")
async def set_order(field: SortField, controller: ListController = Depends(get_controller)) -> ListViewState:
    """Same column flips the direction, a new column sorts ascending."""
    return await controller.set_order(field)


@ROUTER_VIEW.post("/next", response_model=ListViewState, summary="Go to the next page")
async def go_next(controller: ListController = Depends(get_controller)) -> ListViewState:
    """No-op when there is no next page or a fetch is in flight."""
    await controller.go_next()
    return controller.view()


@ROUTER_VIEW.post("/previous", response_model=ListViewState, summary="Go to the previous page")
async def go_previous(controller: ListController = Depends(get_controller)) -> ListViewState:
    """No-op when there is no previous page or a fetch is in flight."""
    await controller.go_previous()
    return controller.view()


@ROUTER_VIEW.post("/selection/toggle-all", response_model=ListViewState, summary="Select-all checkbox")
async def toggle_all(body: ToggleAllRequest, controller: ListController = Depends(get_controller)) -> ListViewState:
    """Checked selects exactly the current page, unchecked clears the selection."""
    return controller.toggle_all(body.checked)


@ROUTER_VIEW.post("/selection/{person_id}/toggle", response_model=ListViewState, summary="Row checkbox")
async def toggle_one(person_id: str, controller: ListController = Depends(get_controller)) -> ListViewState:
    """Add or remove one id; the selection survives pagination."""
    return controller.toggle_one(parse_person_id(person_id))


@ROUTER_VIEW.delete("/selection", response_model=ListViewState, summary="Clear the selection")
async def clear_selection(controller: ListController = Depends(get_controller)) -> ListViewState:
    return controller.clear_selection()


# delete (cruD)
@ROUTER_VIEW.post("/delete/request", response_model=ListViewState, summary="Ask to delete the selection")
async def request_delete(controller: ListController = Depends(get_controller)) -> ListViewState:
    """Enter the confirmation step (ignored when nothing is selected)."""
    return controller.request_delete()


@ROUTER_VIEW.post(
    "/delete/cancel",
    response_model=ListViewState,
    summary="Leave the confirmation step",
    responses=INVALID_TRANSITION_RESPONSE,
)
async def cancel_delete(controller: ListController = Depends(get_controller)) -> ListViewState:
    return controller.cancel_delete()


@ROUTER_VIEW.post(
    "/delete/execute",
    response_model=BulkDeleteReport,
    summary="Delete the selection",
    responses=INVALID_TRANSITION_RESPONSE,
)
async def execute_delete(controller: ListController = Depends(get_controller)) -> BulkDeleteReport:
    """
    Delete the selected persons one by one, stopping at the first failure.

    The report lists every selected id as DELETED, FAILED or NOT_ATTEMPTED.
    The selection is cleared and page 1 is reloaded in every case.
    """
    return await controller.execute_delete()


@ROUTER_VIEW.post(
    "/stats",
    response_model=JobState,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start the statistics report",
)
async def submit_stats(controller: ListController = Depends(get_controller)) -> JobState:
    """Start the remote computation; poll GET /view for its progress and result."""
    return await controller.submit_stats()


@ROUTER_VIEW.delete("/stats", response_model=ListViewState, summary="Dismiss the statistics report")
async def dismiss_stats(controller: ListController = Depends(get_controller)) -> ListViewState:
    """Hide the result and stop any polling still in flight."""
    return controller.dismiss_stats()
