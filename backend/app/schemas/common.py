from typing import ClassVar

from pydantic import BaseModel, model_validator


class PatchModel(BaseModel):
    """Partial update body. Omitted fields stay unchanged; fields named in
    ``not_null`` map to NOT NULL columns and refuse an explicit null."""

    not_null: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _refuse_nulls(self):
        nulls = sorted(
            field for field in self.model_fields_set & self.not_null if getattr(self, field) is None
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self
