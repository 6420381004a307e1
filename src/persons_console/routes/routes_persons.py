"""Person form and notification endpoints."""

from typing import List

from fastapi import APIRouter
from fastapi import Depends
from fastapi import status

from persons_console.dependencies import get_form_submitter
from persons_console.dependencies import get_notifier
from persons_console.forms.person_form import PersonFormSubmitter
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.schemas.schemas import Notification
from persons_console.schemas.schemas import Person
from persons_console.schemas.schemas import PersonCreateRequest
from persons_console.schemas.schemas import PersonUpdateRequest
from persons_console.schemas.schemas import parse_person_id

ROUTER_PERSONS = APIRouter(tags=["Persons"])

SAVE_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {
        "description": "Persons API rejected the person",
        "content": {
            "application/json": {
                "example": {
                    "detail": "Persons API rejected the submitted person",
                    "error_type": "PersonValidationError",
                    "errors": {"age": ["Ensure this value is greater than or equal to 0."]},
                }
            }
        },
    },
    status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Persons API unreachable"},
}


# create (Crud)
@ROUTER_PERSONS.post(
    "/persons",
    response_model=Person,
    status_code=status.HTTP_201_CREATED,
    summary="Create a person",
    responses=SAVE_ERROR_RESPONSES,
)
async def create_person(
    body: PersonCreateRequest,
    submitter: PersonFormSubmitter = Depends(get_form_submitter),
) -> Person:
    """Create a person and reload the list (hobbies may be a comma separated string)."""
    return await submitter.create(body)


# update (crUd)
@ROUTER_PERSONS.patch(
    "/persons/{person_id}",
    response_model=Person,
    summary="Update a person",
    responses=SAVE_ERROR_RESPONSES,
)
async def update_person(
    person_id: str,
    body: PersonUpdateRequest,
    submitter: PersonFormSubmitter = Depends(get_form_submitter),
) -> Person:
    """Update the given fields of a person and reload the list."""
    return await submitter.update(parse_person_id(person_id), body)


@ROUTER_PERSONS.get("/notifications", response_model=List[Notification], summary="Drain pending notifications")
async def drain_notifications(notifier: NotificationCenter = Depends(get_notifier)) -> List[Notification]:
    """Return the toasts raised since the last call and forget them."""
    return notifier.drain()
