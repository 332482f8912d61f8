from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

RecordT = TypeVar("RecordT")


class Record(BaseModel):
    """Base for backend records: unknown fields are ignored, nulls fall back to defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class RecordList(BaseModel, Generic[RecordT]):
    """One page of a backend list query."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[RecordT] = []
    page: int = 1
    per_page: int = Field(default=0, alias="perPage")
    total_items: int = Field(default=0, alias="totalItems")
    total_pages: int = Field(default=0, alias="totalPages")
