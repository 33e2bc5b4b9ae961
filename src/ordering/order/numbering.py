"""Order numbers: human-facing identifiers distinct from order ids.

The store's ``generate_order_number`` procedure is the primary source. When
it is unreachable or returns nothing, a local generator takes over so that
checkout never waits on this step.
"""

import itertools
import threading
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from shared.errors import StoreError
from shared.store.port import Store

logger = structlog.get_logger(__name__)

ORDER_NUMBER_PROCEDURE = "generate_order_number"

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def fallback_order_number(now: datetime | None = None) -> str:
    """Timestamp-based order number that needs no store round-trip.

    Millisecond timestamp, a process-wide sequence, and a random suffix keep
    numbers unique across rapid calls in one process and across processes.
    """
    now = now or datetime.now(UTC)
    with _sequence_lock:
        sequence = next(_sequence) % 10000
    return f"ORD-{int(now.timestamp() * 1000)}-{sequence:04d}-{uuid4().hex[:6].upper()}"


class OrderNumberGenerator:
    def __init__(self, store: Store) -> None:
        self.store = store

    def next_number(self) -> str:
        try:
            number = self.store.call_procedure(ORDER_NUMBER_PROCEDURE)
        except StoreError as exc:
            logger.warning("Order number procedure failed, using fallback", error=str(exc))
            return fallback_order_number()

        if not number:
            logger.warning("Order number procedure returned nothing, using fallback")
            return fallback_order_number()
        return str(number)
