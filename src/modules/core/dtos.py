"""Base class for partial-update (PATCH) DTOs.

A patch distinguishes three cases per field:

- absent: the field is not in ``model_fields_set`` and is left untouched;
- present with a value: the column is overwritten;
- present and ``None``: the column is cleared, allowed only for fields
  not listed in ``REQUIRED_FIELDS``.
"""

from __future__ import annotations

from typing import ClassVar, FrozenSet, Self

from pydantic import BaseModel, ConfigDict, model_validator


class PatchDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    REQUIRED_FIELDS: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def check_present_fields(self) -> Self:
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided.")
        for name in self.model_fields_set & self.REQUIRED_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"Field '{name}' cannot be null.")
        return self

    def provided(self, name: str) -> bool:
        return name in self.model_fields_set
