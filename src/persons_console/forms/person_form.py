"""
Person form submission.

Sends create/update requests and bumps the list's refresh signal after a
successful save. Field validation is left to the persons API.
"""

from typing import Awaitable
from typing import Callable
from typing import Optional

from loguru import logger

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import NetworkError
from persons_console.errors import PersonValidationError
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.schemas.schemas import Person
from persons_console.schemas.schemas import PersonCreateRequest
from persons_console.schemas.schemas import PersonId
from persons_console.schemas.schemas import PersonUpdateRequest

SavedHook = Callable[[], Awaitable[object]]


class PersonFormSubmitter:
    """Create or update a person, then notify the list."""

    def __init__(
        self,
        api_client: PersonsApiClient,
        notifier: NotificationCenter,
        on_saved: Optional[SavedHook] = None,
    ):
        self.api_client = api_client
        self.notifier = notifier
        self.on_saved = on_saved

    async def create(self, request: PersonCreateRequest) -> Person:
        return await self._save(self.api_client.create_person(request.to_api()), action="create")

    async def update(self, person_id: PersonId, request: PersonUpdateRequest) -> Person:
        return await self._save(
            self.api_client.update_person(person_id, request.to_api()), action="update", person_id=person_id
        )

    async def _save(self, call: Awaitable[dict], action: str, **context) -> Person:
        try:
            data = await call
        except (PersonValidationError, NetworkError) as e:
            self.notifier.error("Error saving data.", action=action, error=str(e), **context)
            raise

        person = Person.model_validate(data)
        logger.info(f"Person {action}d", person_id=person.id)
        self.notifier.success("Saved successfully!", person_id=person.id)

        if self.on_saved is not None:
            await self.on_saved()
        return person
