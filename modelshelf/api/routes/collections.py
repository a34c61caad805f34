# modelshelf/api/routes/collections.py
"""User collection routes."""

from typing import List

from fastapi import APIRouter

from ..dependencies import StoreDep
from ..errors import APIError
from ..schemas import (
    CollectionDetailResponse,
    CollectionMembershipRequest,
    CollectionRequest,
    CollectionResponse,
    ModelResponse,
    SuccessResponse,
)


router = APIRouter()


async def _require_collection(store, collection_id: int):
    collection = await store.run(store.get_collection, collection_id)
    if collection is None:
        raise APIError.not_found("Collection", str(collection_id))
    return collection


async def _require_model(store, model_id: int):
    model = await store.run(store.get_model, model_id)
    if model is None:
        raise APIError.not_found("Model", str(model_id))
    return model


@router.get("/collections", response_model=List[CollectionResponse])
async def list_collections(store: StoreDep):
    """List all collections with their member counts."""
    collections = await store.run(store.list_collections)
    sizes = await store.run(store.collection_sizes)
    return [CollectionResponse.from_entry(c, sizes.get(c.id, 0)) for c in collections]


@router.post("/collections", response_model=CollectionResponse)
async def create_collection(request: CollectionRequest, store: StoreDep):
    """Create an empty collection."""
    collection = await store.run(store.create_collection, request.name)
    return CollectionResponse.from_entry(collection)


# Declared before /collection/{collection_id} so the literal path wins
@router.post("/collection/add_model", response_model=SuccessResponse)
async def add_model_to_collection(request: CollectionMembershipRequest, store: StoreDep):
    """Add a model to a collection. Adding an existing member is a no-op."""
    await _require_collection(store, request.collection_id)
    await _require_model(store, request.model_id)

    added = await store.run(store.add_to_collection, request.collection_id, request.model_id)
    return SuccessResponse(message=None if added else "Model already in collection")


@router.get("/collection/{collection_id}", response_model=CollectionDetailResponse)
async def get_collection(collection_id: int, store: StoreDep):
    """Get a collection and its models."""
    collection = await _require_collection(store, collection_id)
    models = await store.run(store.collection_models, collection_id)
    return CollectionDetailResponse(
        **CollectionResponse.from_entry(collection, len(models)).model_dump(),
        models=[ModelResponse.from_entry(m) for m in models],
    )


@router.post("/collection/{collection_id}", response_model=CollectionResponse)
async def rename_collection(collection_id: int, request: CollectionRequest, store: StoreDep):
    """Rename a collection."""
    collection = await store.run(store.rename_collection, collection_id, request.name)
    if collection is None:
        raise APIError.not_found("Collection", str(collection_id))
    sizes = await store.run(store.collection_sizes)
    return CollectionResponse.from_entry(collection, sizes.get(collection_id, 0))


@router.post("/collection/{collection_id}/delete", response_model=SuccessResponse)
async def delete_collection(collection_id: int, store: StoreDep):
    """Delete a collection. Its models stay in the catalog."""
    if not await store.run(store.delete_collection, collection_id):
        raise APIError.not_found("Collection", str(collection_id))
    return SuccessResponse()


@router.post("/collection/{collection_id}/remove_model/{model_id}", response_model=SuccessResponse)
async def remove_model_from_collection(collection_id: int, model_id: int, store: StoreDep):
    """Remove a model from a collection."""
    if not await store.run(store.remove_from_collection, collection_id, model_id):
        raise APIError.not_found("Collection membership", f"{collection_id}/{model_id}")
    return SuccessResponse()


@router.get("/model/{model_id}/collections", response_model=List[CollectionResponse])
async def get_model_collections(model_id: int, store: StoreDep):
    """Collections a model belongs to."""
    await _require_model(store, model_id)
    collections = await store.run(store.model_collections, model_id)
    sizes = await store.run(store.collection_sizes)
    return [CollectionResponse.from_entry(c, sizes.get(c.id, 0)) for c in collections]
