"""
Client-side entity caches.

Poll results are merged by id and version instead of replacing the whole
list, and an entity with a mutation in flight is left alone by polls until
the mutation's own response lands.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from app.core.exceptions import WarehouseError


logger = logging.getLogger(__name__)


def record_version(record: Dict[str, Any]) -> int:
    """Entities without a version column count as version 0: any fresh read replaces them."""
    try:
        return int(record.get("version") or 0)
    except (TypeError, ValueError):
        return 0


class EntityCache:
    """
    Cache of one entity type, keyed by id.

    Usage:
        cache = EntityCache("grn")
        cache.apply_poll(await api.list_grns())
        await cache.write(grn_id, lambda: api.start_grn(grn_id, version=v))
    """

    def __init__(self, entity_type: str, key: str = "id"):
        self.entity_type = entity_type
        self.key = key
        self._records: Dict[str, Dict[str, Any]] = {}
        self._pending: Set[str] = set()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, entity_id: object) -> bool:
        return str(entity_id) in self._records

    def get(self, entity_id: Any) -> Optional[Dict[str, Any]]:
        return self._records.get(str(entity_id))

    def items(self) -> List[Dict[str, Any]]:
        return list(self._records.values())

    @property
    def pending(self) -> Set[str]:
        return set(self._pending)

    def is_pending(self, entity_id: Any) -> bool:
        return str(entity_id) in self._pending

    def _merge(self, record: Dict[str, Any]) -> bool:
        entity_id = str(record[self.key])
        current = self._records.get(entity_id)
        if current is not None and record_version(record) < record_version(current):
            return False
        self._records[entity_id] = record
        return True

    def apply_poll(self, records: Iterable[Dict[str, Any]]) -> int:
        """
        Merge a full list read. Returns how many records were taken.

        Pending ids keep their local copy. Records that are missing from the
        read are dropped unless a write for them is still in flight.
        """
        applied = 0
        seen = set()
        for record in records:
            entity_id = str(record[self.key])
            seen.add(entity_id)
            if entity_id in self._pending:
                continue
            if self._merge(record):
                applied += 1

        for entity_id in list(self._records):
            if entity_id not in seen and entity_id not in self._pending:
                del self._records[entity_id]
        return applied

    def begin_write(self, entity_id: Any) -> None:
        self._pending.add(str(entity_id))

    def confirm_write(self, entity_id: Any, record: Optional[Dict[str, Any]]) -> None:
        """The server answered: store its copy and release the id for polling."""
        self._pending.discard(str(entity_id))
        if record:
            self._merge(record)

    def abort_write(self, entity_id: Any) -> None:
        self._pending.discard(str(entity_id))

    def put_local(self, record: Dict[str, Any]) -> None:
        """Overwrite the cached copy regardless of version (optimistic local edit)."""
        self._records[str(record[self.key])] = record

    async def write(
        self,
        entity_id: Optional[Any],
        mutation: Callable[[], Awaitable[Optional[Dict[str, Any]]]],
    ) -> Optional[Dict[str, Any]]:
        """
        Run a mutation and apply the confirmed response.

        entity_id is None for creates; the new record is merged once the
        server has assigned its id.
        """
        if entity_id is not None:
            self.begin_write(entity_id)
        try:
            record = await mutation()
        except Exception:
            if entity_id is not None:
                self.abort_write(entity_id)
            raise

        if entity_id is not None:
            self.confirm_write(entity_id, record)
        elif record and self.key in record:
            self._merge(record)
        return record


class ComplianceChecklist:
    """
    Compliance checklist with optimistic toggles.

    A toggle flips the local copy before the server answers. If the server
    call fails the flip stays, the id is listed in `unsynced`, and the next
    refresh pushes the local value again before merging the server's list.
    """

    def __init__(self, api):
        self.api = api
        self.cache = EntityCache("complianceCheck")
        self.unsynced: Dict[str, bool] = {}

    def items(self) -> List[Dict[str, Any]]:
        return self.cache.items()

    async def toggle(self, check_id: Any, completed: bool) -> bool:
        """Returns True when the server confirmed the change."""
        check_id = str(check_id)
        current = self.cache.get(check_id) or {"id": check_id}
        self.cache.put_local(dict(current, completed=completed))
        self.cache.begin_write(check_id)

        try:
            confirmed = await self.api.toggle_check(check_id, completed)
        except WarehouseError as e:
            logger.warning(f"Compliance check {check_id} toggle not synced: {e.kind}")
            self.unsynced[check_id] = completed
            return False

        self.unsynced.pop(check_id, None)
        self.cache.confirm_write(check_id, confirmed)
        return True

    async def refresh(self) -> None:
        for check_id, completed in list(self.unsynced.items()):
            try:
                confirmed = await self.api.toggle_check(check_id, completed)
            except WarehouseError as e:
                logger.warning(f"Compliance check {check_id} still not synced: {e.kind}")
                continue
            del self.unsynced[check_id]
            self.cache.confirm_write(check_id, confirmed)

        checks = await self.api.list_compliance_checks()
        self.cache.apply_poll(checks)
