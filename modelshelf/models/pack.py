# modelshelf/models/pack.py
"""Pack descriptor schema and the metadata loaded for one pack."""

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PackDescriptor(BaseModel):
    """
    Parsed ``modelpack.json`` of a pack root. Transient, never stored as-is.
    """

    model_config = ConfigDict(extra="ignore")

    version: str = Field(validation_alias=AliasChoices("version", "schema_version"))
    title: str
    author: str
    origin: str
    license: str

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> Any:
        # Early packs wrote the schema version as a number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value


class PackMetadata(BaseModel):
    """Everything the catalog stores about a pack, read from disk."""

    folder_path: str                  # Relative to library root, POSIX style
    root: Path
    descriptor: PackDescriptor
    slug: str
    images: list[str] = Field(default_factory=list)
    description: str = ""

    def row_values(self) -> dict[str, Any]:
        """Column values for an insert or update of the ModelEntry row."""
        return {
            "title": self.descriptor.title,
            "slug": self.slug,
            "license": self.descriptor.license,
            "author": self.descriptor.author,
            "origin": self.descriptor.origin,
            "folder_path": self.folder_path,
            "images": list(self.images),
            "description": self.description,
        }
