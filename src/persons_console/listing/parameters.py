"""
Filter/Order State

Value holder for the list parameters. Every change emits a "parameters changed"
event; listeners are expected to discard pagination cursors and refetch page 1.
"""

from typing import Callable
from typing import List
from typing import Tuple

from loguru import logger

from persons_console.schemas.enums import SortDirection
from persons_console.schemas.enums import SortField
from persons_console.schemas.schemas import FilterSpec
from persons_console.schemas.schemas import OrderSpec

ParametersListener = Callable[[FilterSpec, OrderSpec], None]


def toggle_order(current: OrderSpec, field: SortField) -> OrderSpec:
    """Same field inverts the direction; a new field starts ascending."""
    if current.field is field:
        return OrderSpec(field=field, direction=current.direction.inverted())
    return OrderSpec(field=field, direction=SortDirection.ASCENDING)


class ListParameters:
    """Current filter and order, with change notification."""

    def __init__(self, filter: FilterSpec = None, order: OrderSpec = None):
        self.filter = filter or FilterSpec()
        self.order = order or OrderSpec()
        self._listeners: List[ParametersListener] = []

    def subscribe(self, listener: ParametersListener) -> None:
        """Register a callback invoked with the new (filter, order) after every change."""
        self._listeners.append(listener)

    def set_filter(self, spec: FilterSpec) -> Tuple[FilterSpec, OrderSpec]:
        self.filter = spec
        logger.debug("Filter changed", start_date=spec.start_date, end_date=spec.end_date)
        self._emit()
        return self.filter, self.order

    def set_order(self, field: SortField) -> Tuple[FilterSpec, OrderSpec]:
        self.order = toggle_order(self.order, field)
        logger.debug("Order changed", ordering=self.order.to_ordering())
        self._emit()
        return self.filter, self.order

    def _emit(self) -> None:
        for listener in self._listeners:
            listener(self.filter, self.order)
