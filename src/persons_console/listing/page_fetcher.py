"""
Page Fetcher

Issues one list query and normalizes the response into a Page.
"""

from typing import Any
from typing import Dict
from typing import Optional

import pydantic
from loguru import logger
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import model_validator

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import NetworkError
from persons_console.schemas.schemas import FilterSpec
from persons_console.schemas.schemas import OrderSpec
from persons_console.schemas.schemas import Page
from persons_console.schemas.schemas import Person


class PageRequest(BaseModel):
    """
    Either a cursor or filter/order parameters, never both.

    A cursor already encodes filter and order server-side, so cursor requests
    carry no parameters of their own.
    """

    model_config = ConfigDict(frozen=True)

    cursor: Optional[str] = None
    filter: Optional[FilterSpec] = None
    order: Optional[OrderSpec] = None

    @model_validator(mode="after")
    def validate_exclusive(self):
        """Reject requests mixing a cursor with parameters, or carrying neither."""
        has_params = self.filter is not None or self.order is not None
        if self.cursor is not None and has_params:
            raise ValueError("A cursor request must not carry filter or order")
        if self.cursor is None and not has_params:
            raise ValueError("A page request needs a cursor or filter/order parameters")
        return self

    @classmethod
    def first_page(cls, filter: FilterSpec, order: OrderSpec) -> "PageRequest":
        return cls(filter=filter, order=order)

    @classmethod
    def at_cursor(cls, cursor: str) -> "PageRequest":
        return cls(cursor=cursor)


class PageFetcher:
    """Fetches pages of persons through the API client."""

    def __init__(self, api_client: PersonsApiClient):
        self.api_client = api_client

    async def fetch_page(self, request: PageRequest) -> Page:
        """
        Fetch one page.

        Args:
            request: cursor request or first-page request

        Returns:
            Normalized Page

        Raises:
            NetworkError: transport failure, error status or malformed payload
        """
        if request.cursor is not None:
            logger.debug("Fetching page by cursor", cursor=request.cursor)
            payload = await self.api_client.get_page(request.cursor)
        else:
            params = (request.filter or FilterSpec()).to_query_params()
            params["ordering"] = (request.order or OrderSpec()).to_ordering()
            logger.debug("Fetching first page", params=params)
            payload = await self.api_client.list_persons(params)

        return normalize_page(payload)


def normalize_page(payload: Dict[str, Any]) -> Page:
    """Convert a `{results, next, previous, count}` payload into a Page."""
    count = payload.get("count")
    try:
        items = [Person.model_validate(item) for item in payload.get("results") or []]
        return Page(
            items=items,
            next_cursor=payload.get("next") or None,
            previous_cursor=payload.get("previous") or None,
            total_count=count if isinstance(count, int) else len(items),
        )
    except pydantic.ValidationError as e:
        raise NetworkError(f"Persons API returned a malformed page: {e.error_count()} error(s)") from e
