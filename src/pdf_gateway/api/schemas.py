from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import ConversionOptions
from ..sessions import SessionRecord


class OptionsPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    flatten: bool = False
    merge: bool = False
    landscape: bool = False
    print_background: bool = False
    paper_width: float | None = None
    paper_height: float | None = None
    margin_top: float | None = None
    margin_bottom: float | None = None
    margin_left: float | None = None
    margin_right: float | None = None
    scale: float | None = None
    native_page_ranges: str | None = None
    index_html: str | None = None

    def to_options(self) -> ConversionOptions:
        return ConversionOptions(**self.model_dump(by_alias=False))


class UrlConversionPayload(BaseModel):
    url: str
    options: OptionsPayload = Field(default_factory=OptionsPayload)


class ProcessPayload(BaseModel):
    order: list[str]


class SessionItemView(BaseModel):
    index: int
    name: str
    size_bytes: int = Field(serialization_alias="sizeBytes")


class SessionView(BaseModel):
    session_id: str = Field(serialization_alias="sessionId")
    status: str
    created_at: str | None = Field(default=None, serialization_alias="createdAt")
    finished_at: str | None = Field(default=None, serialization_alias="finishedAt")
    items: list[SessionItemView]
    result_name: str | None = Field(default=None, serialization_alias="resultName")
    error_code: str | None = Field(default=None, serialization_alias="errorCode")
    error_message: str | None = Field(default=None, serialization_alias="errorMessage")

    @classmethod
    def from_record(cls, record: SessionRecord) -> "SessionView":
        return cls(
            session_id=record.session_id,
            status=record.status.value,
            created_at=record.created_at,
            finished_at=record.finished_at,
            items=[
                SessionItemView(index=item.index, name=item.name, size_bytes=item.size_bytes)
                for item in record.items
            ],
            result_name=record.result_name,
            error_code=record.error_code,
            error_message=record.error_message,
        )


__all__ = [
    "OptionsPayload",
    "ProcessPayload",
    "SessionItemView",
    "SessionView",
    "UrlConversionPayload",
]
