"""Base model with common configuration for bundlectl documents."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict


class BaseModel(PydanticBaseModel):
    """Shared pydantic settings for bundlectl documents."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping using field aliases, without unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
