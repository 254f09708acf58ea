from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel


def _json_column(nullable: bool = True) -> Column:
    return Column(
        JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql"),
        nullable=nullable,
    )


def _timestamp_column(nullable: bool = False) -> Column:
    return Column(DateTime(timezone=True), nullable=nullable)


class RunRecord(SQLModel, table=True):
    __tablename__ = "runs"

    run_id: str = Field(primary_key=True, max_length=255)
    input_ref: str
    owner_id: str = Field(index=True, max_length=255)

    status: str = Field(index=True, max_length=32)
    transcription_status: str = Field(max_length=32)
    generation_status: str = Field(max_length=32)
    key_moments_status: str = Field(max_length=32)
    summary_status: str = Field(max_length=32)
    social_posts_status: str = Field(max_length=32)
    titles_status: str = Field(max_length=32)
    hashtags_status: str = Field(max_length=32)
    youtube_timestamps_status: str = Field(max_length=32)

    transcript: Optional[dict[str, Any]] = Field(default=None, sa_column=_json_column())
    key_moments: Optional[list[dict[str, Any]]] = Field(
        default=None, sa_column=_json_column()
    )
    summary: Optional[dict[str, Any]] = Field(default=None, sa_column=_json_column())
    social_posts: Optional[dict[str, Any]] = Field(
        default=None, sa_column=_json_column()
    )
    titles: Optional[dict[str, Any]] = Field(default=None, sa_column=_json_column())
    hashtags: Optional[dict[str, Any]] = Field(default=None, sa_column=_json_column())
    youtube_timestamps: Optional[list[dict[str, Any]]] = Field(
        default=None, sa_column=_json_column()
    )
    task_errors: dict[str, Any] = Field(
        default_factory=dict, sa_column=_json_column(nullable=False)
    )
    error: Optional[dict[str, Any]] = Field(default=None, sa_column=_json_column())

    created_at: datetime = Field(sa_column=_timestamp_column())
    updated_at: datetime = Field(sa_column=_timestamp_column())
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=_timestamp_column(nullable=True)
    )
