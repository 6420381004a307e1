"""Async client for the remote persons API."""

from typing import Any
from typing import Dict
from typing import Optional

import httpx
import pydantic
from loguru import logger

from persons_console.errors import ApiResponseError
from persons_console.errors import NetworkError
from persons_console.errors import PersonValidationError
from persons_console.schemas.schemas import PersonId
from persons_console.schemas.schemas import TaskStatusResponse
from persons_console.settings import Settings

PERSONS_PATH = "/persons/"
STATS_PATH = "/persons/calculate-stats/"


def person_path(person_id: PersonId) -> str:
    """Path of a single person resource."""
    return f"/persons/{person_id}/"


def task_path(task_id: str) -> str:
    """Path of the long-task status resource."""
    return f"/long-task/{task_id}/"


class PersonsApiClient:
    """
    Thin wrapper around httpx.AsyncClient for the persons API.

    Every transport failure is converted to NetworkError and every non-2xx
    response to ApiResponseError, so callers only ever handle console errors.

    Parameters
    ----------
    base_url : str
        Base URL of the persons API, e.g. http://localhost:8000/api
    timeout : float
        Timeout (seconds) applied to every request
    transport : httpx.AsyncBaseTransport, optional
        Transport override (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "PersonsApiClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.persons_api_base_url,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    # read (cRud)
    async def list_persons(self, params: Dict[str, str]) -> Dict[str, Any]:
        """GET /persons/ with filter and ordering query parameters."""
        response = await self._request("GET", PERSONS_PATH, params=params)
        return self._json(response)

    async def get_page(self, cursor: str) -> Dict[str, Any]:
        """GET an opaque cursor URL issued by a previous list response."""
        response = await self._request("GET", cursor)
        return self._json(response)

    # delete (cruD)
    async def delete_person(self, person_id: PersonId) -> None:
        """DELETE /persons/{id}/."""
        await self._request("DELETE", person_path(person_id))

    # create (Crud)
    async def create_person(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /persons/ (form submission)."""
        response = await self._request("POST", PERSONS_PATH, json=payload, validation_errors=True)
        return self._json(response)

    # update (crUd)
    async def update_person(self, person_id: PersonId, payload: Dict[str, Any]) -> Dict[str, Any]:
        """PATCH /persons/{id}/ (form submission)."""
        response = await self._request("PATCH", person_path(person_id), json=payload, validation_errors=True)
        return self._json(response)

    async def start_stats(self) -> str:
        """POST /persons/calculate-stats/ and return the task id."""
        response = await self._request("POST", STATS_PATH)
        data = self._json(response)
        task_id = data.get("task_id")
        if not task_id:
            raise NetworkError("Statistics endpoint did not return a task_id")
        return str(task_id)

    async def get_task_status(self, task_id: str) -> TaskStatusResponse:
        """GET /long-task/{task_id}/."""
        response = await self._request("GET", task_path(task_id))
        try:
            return TaskStatusResponse.model_validate(self._json(response))
        except pydantic.ValidationError as e:
            raise NetworkError(
                f"Persons API returned a malformed status for task {task_id}: {e.error_count()} error(s)"
            ) from e

    async def _request(self, method: str, url: str, validation_errors: bool = False, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Persons API request timed out", method=method, url=url)
            raise NetworkError(f"Request to persons API timed out: {method} {url}") from e
        except httpx.RequestError as e:
            logger.warning("Persons API request failed", method=method, url=url, error=str(e))
            raise NetworkError(f"Could not reach persons API: {e}") from e

        logger.debug(
            "Persons API response",
            method=method,
            url=str(response.request.url),
            status_code=response.status_code,
        )

        if response.is_success:
            return response

        if validation_errors and response.status_code == 400:
            raise PersonValidationError("Persons API rejected the submitted person", errors=self._error_body(response))

        raise ApiResponseError(
            f"Persons API returned {response.status_code} for {method} {url}",
            status_code=response.status_code,
            body=response.text,
        )

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"Persons API returned invalid JSON for {response.request.url}") from e
        if not isinstance(data, dict):
            raise NetworkError(f"Persons API returned unexpected payload for {response.request.url}")
        return data

    @staticmethod
    def _error_body(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {"detail": response.text}
        return body if isinstance(body, dict) else {"detail": body}
