# modelshelf/api/routes/models.py
"""Model catalog browsing routes."""

from typing import Optional

from fastapi import APIRouter, Query

from ..dependencies import StoreDep
from ..errors import APIError
from ..schemas import (
    FavouriteRequest,
    FileResponse,
    ModelDetailResponse,
    ModelListResponse,
    ModelResponse,
)


router = APIRouter()


@router.get("/list", response_model=ModelListResponse)
async def list_models(
    store: StoreDep,
    q: Optional[str] = None,
    favourite: Optional[bool] = None,
    page: int = Query(0, ge=0),
    page_size: int = Query(50, ge=1, le=500),
):
    """List models, optionally filtered by search term and favourite flag."""
    result = await store.run(store.query_models, q, favourite, page, page_size)
    return ModelListResponse.from_page(result)


@router.get("/{slug}", response_model=ModelDetailResponse)
async def get_model(slug: str, store: StoreDep):
    """Get a model and its files by slug."""
    entry = await store.run(store.get_model_by_slug, slug)
    if entry is None:
        raise APIError.not_found("Model", slug)

    files = await store.run(store.list_files, entry.id)
    return ModelDetailResponse(
        **ModelResponse.from_entry(entry).model_dump(),
        files=[FileResponse.from_entry(f) for f in files],
    )


@router.put("/{slug}/favourite", response_model=ModelResponse)
async def set_favourite(slug: str, request: FavouriteRequest, store: StoreDep):
    """Mark or unmark a model as favourite. Survives library refreshes."""
    entry = await store.run(store.get_model_by_slug, slug)
    if entry is None:
        raise APIError.not_found("Model", slug)

    updated = await store.run(store.set_favourite, entry.id, request.favourite)
    if updated is None:
        raise APIError.not_found("Model", slug)
    return ModelResponse.from_entry(updated)
