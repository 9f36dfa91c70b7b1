import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, JSONType


class AccessLog(Base):
    """
    Access log model for tracking every mutating warehouse action.
    Records: stock adjustments, status transitions, assignments, imports, etc.
    """
    __tablename__ = "access_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    # Who performed the action (JWT subject or the anonymous actor)
    actor: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Action details
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Actions: CREATE, UPDATE, TRANSITION, ADJUST, ASSIGN, IMPORT, etc.

    # Entity being modified
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Entity types: GRN, PICKLIST, TRANSFER, INVENTORY_ITEM, etc.

    entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Change tracking
    old_values: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    new_values: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Human-readable summary
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamp
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<AccessLog(action='{self.action}', entity='{self.entity_type}', id='{self.entity_id}')>"
