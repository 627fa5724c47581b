"""Core type definitions shared by the protocol models."""

from typing import Annotated, Any, Final

from pydantic import BaseModel, ConfigDict, Field

LATEST_PROTOCOL_VERSION: Final[str] = "2025-11-25"
SUPPORTED_PROTOCOL_VERSIONS: Final[tuple[str, ...]] = (
    "2025-03-26",
    "2025-06-18",
    LATEST_PROTOCOL_VERSION,
)


class MCPModel(BaseModel):
    """Base class for all protocol domain types. Allows extra fields for forward compatibility."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class RequestParams(MCPModel):
    """Base class for request parameters with _meta support."""

    meta: Annotated[dict[str, Any] | None, Field(alias="_meta")] = None


class NotificationParams(MCPModel):
    """Base class for notification parameters with _meta support."""

    meta: Annotated[dict[str, Any] | None, Field(alias="_meta")] = None


class Result(MCPModel):
    """Base class for results with _meta support."""

    meta: Annotated[dict[str, Any] | None, Field(alias="_meta")] = None
