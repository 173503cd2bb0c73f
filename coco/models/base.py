"""Shared base for API schemas: camelCase on the wire, snake_case in Python."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Unknown server fields are kept so a dumped item round-trips intact
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self, *, partial: bool = False) -> dict[str, Any]:
        """Dump as the JSON dict the API sends (and the cache stores)."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=partial)


class UserSummary(CamelModel):
    """User fields embedded in createdBy / assignedTo / loggedBy."""

    id: str
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    image_url: str | None = None
