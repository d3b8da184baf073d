from datetime import datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from careslots.models._time import naive_utc, utc_naive_now


class ProviderTimeBlock(SQLModel, table=True):
    """One-off time off. Absolute UTC range, may span several days."""

    __tablename__ = "provider_time_blocks"
    __table_args__ = (Index("ix_provider_time_blocks_provider_start", "provider_id", "start_datetime"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(index=True)
    start_datetime: datetime = Field(index=True)
    end_datetime: datetime = Field(index=True)
    reason: str | None = None
    is_unavailable: bool = True
    created_at: datetime = Field(default_factory=utc_naive_now)

    def model_post_init(self, __context: object) -> None:
        """Ensure start/end are naive UTC for TIMESTAMP WITHOUT TIME ZONE."""
        if isinstance(self.start_datetime, datetime):
            self.start_datetime = naive_utc(self.start_datetime)
        if isinstance(self.end_datetime, datetime):
            self.end_datetime = naive_utc(self.end_datetime)
