"""User-action wrapper: failures become notifications, never exceptions."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, TypeVar

from app.core.exceptions import WarehouseError


logger = logging.getLogger(__name__)

T = TypeVar("T")


FAILURE_HINTS = {
    "ValidationError": "check the required fields",
    "NotFound": "the record no longer exists",
    "Conflict": "the record was changed by someone else, reload and retry",
    "InvalidTransition": "not allowed in the current state",
    "NetworkError": "server unreachable",
}


@dataclass
class Notification:
    action: str
    message: str
    kind: str = "NetworkError"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ActionRunner:
    """
    Runs one user action at a time and reloads after success.

    Usage:
        runner = ActionRunner(reload=lambda: poller.poll_now("inbound"))
        grn = await runner.run("Start GRN", lambda: api.start_grn(grn_id))
    """

    def __init__(self, reload: Optional[Callable[[], Awaitable[object]]] = None):
        self.reload = reload
        self.notifications: List[Notification] = []

    def _notify(self, action: str, kind: str) -> None:
        hint = FAILURE_HINTS.get(kind, "unexpected error")
        self.notifications.append(Notification(action=action, message=f"{action} failed: {hint}", kind=kind))

    async def run(self, action: str, operation: Callable[[], Awaitable[T]]) -> Optional[T]:
        """Returns the operation's result, or None when it failed."""
        try:
            result = await operation()
        except WarehouseError as e:
            logger.warning(f"Action '{action}' failed: {e.kind}: {e.message}")
            self._notify(action, e.kind)
            return None
        except Exception:
            logger.exception(f"Action '{action}' failed unexpectedly")
            self._notify(action, "Unexpected")
            return None

        if self.reload is not None:
            try:
                await self.reload()
            except Exception as e:
                logger.warning(f"Reload after '{action}' failed: {e}")
        return result

    def drain(self) -> List[Notification]:
        """Hand pending notifications to the UI and clear them."""
        notifications, self.notifications = self.notifications, []
        return notifications
