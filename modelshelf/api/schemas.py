# modelshelf/api/schemas.py
"""API request and response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..catalog.store import Page
from ..library.filetypes import FileKind, categorize_file
from ..models.catalog import Collection, FileEntry, ModelEntry


# =============================================================================
# Model Schemas
# =============================================================================


class ModelResponse(BaseModel):
    """A catalogued model."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    license: Optional[str] = None
    author: Optional[str] = None
    origin: Optional[str] = None
    folder_path: str
    images: List[str] = []
    description: str = ""
    favourite: bool = False
    date_added: Optional[datetime] = None

    @classmethod
    def from_entry(cls, entry: ModelEntry) -> "ModelResponse":
        return cls.model_validate(entry)


class FileResponse(BaseModel):
    """A file inside a model's ``files/`` tree."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    file_path: str
    preview_image: Optional[str] = None
    content_hash: Optional[str] = None
    file_size_bytes: int = 0
    date_added: Optional[datetime] = None
    kind: FileKind = FileKind.UNKNOWN

    @classmethod
    def from_entry(cls, entry: FileEntry) -> "FileResponse":
        response = cls.model_validate(entry)
        response.kind = categorize_file(entry.file_path)
        return response


class ModelDetailResponse(ModelResponse):
    files: List[FileResponse] = []


class ModelListResponse(BaseModel):
    """Paginated model listing. ``page`` is 0-based."""

    items: List[ModelResponse]
    total_items: int
    page: int
    page_size: int
    num_pages: int

    @classmethod
    def from_page(cls, page: Page) -> "ModelListResponse":
        return cls(
            items=[ModelResponse.from_entry(item) for item in page.items],
            total_items=page.total_items,
            page=page.page,
            page_size=page.page_size,
            num_pages=page.num_pages,
        )


class FavouriteRequest(BaseModel):
    favourite: bool


# =============================================================================
# Collection Schemas
# =============================================================================


class CollectionRequest(BaseModel):
    """Create or rename a collection."""
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Collection name cannot be empty")
        return v


class CollectionMembershipRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: int
    collection_id: int


class CollectionResponse(BaseModel):
    """A named user collection of models."""

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    name: str
    date_added: Optional[datetime] = None
    model_count: int = 0

    @classmethod
    def from_entry(cls, entry: Collection, model_count: int = 0) -> "CollectionResponse":
        response = cls.model_validate(entry)
        response.model_count = model_count
        return response


class CollectionDetailResponse(CollectionResponse):
    models: List[ModelResponse] = []


class SuccessResponse(BaseModel):
    """Standard success response."""
    success: bool = True
    message: Optional[str] = None
