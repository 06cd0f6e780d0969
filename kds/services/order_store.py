"""
Order Store with Concurrency Control

Owns the in-memory order collection, the single source of truth for the
process, and persists it as one JSON document after every mutation.

Concurrency:
    - A threading.RLock serializes read-modify-persist cycles inside the
      process (FastAPI runs sync endpoints in a threadpool).
    - A FileLock next to the data file keeps a second process (for example
      scripts/verify.py or a stray worker) from reading a half-replaced file.

Writes go to a temp file in the same directory, are fsynced and then
os.replace()d over the document. The new collection is committed in
memory only after the write succeeds, so a failed write leaves both memory
and disk at the last durable state.

Orders are never mutated in place: transitions build a new Order and swap
it into a new list. Readers holding a snapshot never observe a half-applied
change.

Version: 1.0.0
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union
from datetime import tzinfo

from filelock import FileLock, Timeout
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from kds.core.config import Settings
from kds.core.exceptions import (
    NotFoundError,
    StorageReadError,
    StorageWriteError,
    ValidationError,
)
from kds.models import LineItem, Order, OrderStatus
from kds.services.business_date import business_date, now_ms

logger = logging.getLogger(__name__)

_orders_adapter = TypeAdapter(list[Order])
_items_adapter = TypeAdapter(list[LineItem])

Clock = Callable[[], int]


class OrderStore:
    """Thread-safe order collection backed by a JSON document."""

    def __init__(
        self,
        path: Union[str, Path],
        lock_timeout: float = 30,
        clock: Clock = now_ms,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.path = Path(path)
        self.lock_timeout = lock_timeout
        self.clock = clock
        self.tz = tz
        self._lock = threading.RLock()
        self._file_lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)
        self._orders: list[Order] = []
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = now_ms) -> "OrderStore":
        """Build and load the store described by the application settings."""
        store = cls(
            settings.orders_file,
            lock_timeout=settings.storage_lock_timeout,
            clock=clock,
            tz=settings.tzinfo,
        )
        store.load()
        return store

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _ensure_data_dir(self) -> None:
        """Create data directory if needed."""
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.path.parent}")

    def _read(self) -> list[Order]:
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise StorageReadError(f"Cannot read {self.path}: {e}") from e
        try:
            return _orders_adapter.validate_json(raw)
        except PydanticValidationError as e:
            raise StorageReadError(
                f"Malformed orders document {self.path}: {e.error_count()} error(s)"
            ) from e

    def _quarantine(self) -> None:
        """Move an unreadable document aside so the next write does not destroy it."""
        target = self.path.with_name(f"{self.path.name}.corrupt-{self.clock()}")
        try:
            os.replace(self.path, target)
            logger.warning(f"Moved unreadable orders document to {target}")
        except OSError as e:
            logger.error(f"Could not move unreadable orders document aside: {e}")

    def load(self) -> int:
        """
        Load the persisted collection, replacing the in-memory one.

        A missing document means an empty store. An unreadable or malformed
        document is logged, moved aside, and the store starts empty.

        Returns:
            Number of orders loaded
        """
        self._ensure_data_dir()

        with self._lock:
            if not self.path.exists():
                logger.info(f"No orders document at {self.path}, starting empty")
                self._orders = []
                return 0

            try:
                with self._file_lock:
                    orders = self._read()
            except Timeout:
                logger.error(f"Lock timeout ({self.lock_timeout}s) reading {self.path}, starting empty")
                self._orders = []
                return 0
            except StorageReadError as e:
                logger.error(f"{e.message}; starting with an empty collection")
                self._quarantine()
                self._orders = []
                return 0

            self._orders = orders
            logger.info(f"Loaded {len(orders)} orders from {self.path}")
            return len(orders)

    def _write(self, orders: list[Order]) -> None:
        """Atomically replace the document with ``orders``."""
        payload = json.dumps([o.to_json_dict() for o in orders], indent=2, ensure_ascii=False)

        try:
            self._ensure_data_dir()
            with self._file_lock:
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as fh:
                        fh.write(payload)
                        fh.flush()
                        os.fsync(fh.fileno())
                    os.replace(tmp_name, self.path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
        except Timeout as e:
            logger.error(f"Lock timeout ({self.lock_timeout}s) writing {self.path}")
            raise StorageWriteError(f"Lock timeout ({self.lock_timeout}s)") from e
        except OSError as e:
            logger.exception(f"Error writing orders document {self.path}")
            raise StorageWriteError() from e

        logger.debug(f"Persisted {len(orders)} orders to {self.path}")

    def close(self) -> None:
        """Flush the collection one last time; called at application shutdown."""
        with self._lock:
            if self._closed:
                return
            if self._orders or self.path.exists():
                self._write(self._orders)
            self._closed = True
            logger.info(f"Order store closed ({len(self._orders)} orders)")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def __len__(self) -> int:
        return len(self._orders)

    def snapshot(self) -> list[Order]:
        """All orders in stored (creation) order."""
        return list(self._orders)

    def get(self, order_id: int) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def find_by_id(self, order_id: int) -> Order:
        order = self.get(order_id)
        if order is None:
            raise NotFoundError(f"Order #{order_id} not found")
        return order

    def list_orders(self, date: Optional[str] = None, status: Optional[Union[str, OrderStatus]] = None) -> list[Order]:
        """
        Orders matching the optional business date and status, newest id first.

        Args:
            date: Business date (YYYY-MM-DD) to match exactly
            status: Status value to match exactly

        Returns:
            Matching orders sorted by id descending
        """
        if isinstance(status, OrderStatus):
            status = status.value
        result = self.snapshot()
        if date:
            result = [o for o in result if o.business_date == date]
        if status:
            result = [o for o in result if o.status.value == status]
        result.sort(key=lambda o: o.id, reverse=True)
        return result

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _next_id(self) -> int:
        return max((o.id for o in self._orders), default=0) + 1

    def create(
        self,
        created_by: str = "FrontDesk",
        order_type: str = "Takeaway",
        notes: Optional[str] = "",
        items: Any = None,
    ) -> Order:
        """
        Create a NEW order and persist the collection.

        Line items are accepted as sent; unusable quantities and prices are
        stored as missing (see LineItem).

        Raises:
            ValidationError: items is not a non-empty list
            StorageWriteError: the collection could not be persisted
        """
        if not isinstance(items, list) or not items:
            raise ValidationError("items must be a non-empty array")
        line_items = _items_adapter.validate_python(items)

        with self._lock:
            now = self.clock()
            order = Order(
                id=self._next_id(),
                created_by=created_by,
                order_type=order_type,
                notes=notes or "",
                items=line_items,
                status=OrderStatus.NEW,
                created_at=now,
                business_date=business_date(now, self.tz),
            )
            updated = self._orders + [order]
            self._write(updated)
            self._orders = updated

        logger.info(f"Order #{order.id} created ({order.order_type}, {len(line_items)} items)")
        return order

    def update(self, order_id: int, change: Callable[[Order], Order]) -> Order:
        """
        Replace one order with ``change(order)`` and persist, as one critical section.

        ``change`` may raise to abort; nothing is written in that case.

        Raises:
            NotFoundError: no order has that id
            StorageWriteError: the collection could not be persisted
        """
        with self._lock:
            for index, order in enumerate(self._orders):
                if order.id == order_id:
                    break
            else:
                raise NotFoundError(f"Order #{order_id} not found")

            changed = change(order)
            updated = list(self._orders)
            updated[index] = changed
            self._write(updated)
            self._orders = updated
            return changed
