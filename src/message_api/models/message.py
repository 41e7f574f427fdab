import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime
from message_api.core.timeutil import utcnow
from message_api.db.session import Base

class Message(Base):
    """group message or reply"""
    __tablename__ = "message"
    # Store-assigned; clients never supply it.
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    guid: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Root messages have no parent. Not a FK: the parent is not re-checked.
    parent_message: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    group_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # Caller-supplied event time exactly as sent; event_time is its parsed
    # UTC value (null when unparseable) and backs range queries.
    timestamp: Mapped[str] = mapped_column(String(64), nullable=False)
    event_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    created_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    modified_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)
    # Soft delete marker; set rows are invisible to every read path.
    delete_flag: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
