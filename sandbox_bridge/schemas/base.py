"""Shared schema helpers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case fields in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def first_error(exc: ValidationError) -> str:
    """Return a single human readable message for the first validation failure."""
    error = exc.errors()[0]
    cause = (error.get("ctx") or {}).get("error")
    if cause is not None:
        return str(cause)
    location = ".".join(to_camel(part) if "_" in str(part) else str(part) for part in error.get("loc", ()))
    if error.get("type") == "missing":
        return f"{location} is required"
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))
