from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API DTOs: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Pagination(BaseModel):
    total: int
    page: int
    limit: int


class ApiResponse(BaseModel):
    status: Literal["success", "error"]
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[str]] = None
    pagination: Optional[Pagination] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with JSON-serializable values."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def ok(
        cls,
        data: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
        pagination: Optional[Pagination] = None,
    ) -> "ApiResponse":
        return cls(status="success", data=data, message=message, pagination=pagination)

    @classmethod
    def fail(cls, message: str, errors: Optional[List[str]] = None) -> "ApiResponse":
        return cls(status="error", message=message, errors=errors)
