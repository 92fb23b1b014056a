from typing import Generic, TypeVar, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for payloads shared with the dashboard frontend (camelCase JSON)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class StandardResponse(BaseModel, Generic[T]):
    """Standard API response envelope."""
    status: str = "success"
    data: Optional[T] = None
    message: Optional[str] = None

