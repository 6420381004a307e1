"""
Selection Set

Ids marked for bulk action. Membership is independent of the displayed page:
it survives pagination and filter changes until explicitly cleared, so a
selected id may reference a record that is no longer visible or no longer exists.
"""

from typing import Iterable
from typing import Tuple

from pydantic import BaseModel
from pydantic import ConfigDict

from persons_console.schemas.schemas import PersonId


class SelectionSet(BaseModel):
    """Immutable, insertion-ordered set of person ids; every operation returns a new snapshot."""

    model_config = ConfigDict(frozen=True)

    ids: Tuple[PersonId, ...] = ()

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, person_id: object) -> bool:
        return person_id in self.ids

    def toggle_all(self, page_ids: Iterable[PersonId], checked: bool) -> "SelectionSet":
        """Replace the selection with exactly `page_ids` when checked, clear it otherwise."""
        if not checked:
            return SelectionSet()
        return SelectionSet(ids=tuple(dict.fromkeys(page_ids)))

    def toggle_one(self, person_id: PersonId) -> "SelectionSet":
        """Symmetric difference with {person_id}."""
        if person_id in self.ids:
            return SelectionSet(ids=tuple(i for i in self.ids if i != person_id))
        return SelectionSet(ids=self.ids + (person_id,))

    def clear(self) -> "SelectionSet":
        return SelectionSet()

    def is_all_selected(self, page_ids: Iterable[PersonId]) -> bool:
        """
        State of the "select all" checkbox.

        True only when the selection equals the page ids. A larger cross-page
        selection that happens to contain the whole page is not "all selected".
        """
        page = set(page_ids)
        return bool(page) and set(self.ids) == page
