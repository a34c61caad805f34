# modelshelf/api/routes/library.py
"""Library maintenance routes."""

import logging

from fastapi import APIRouter

from ...errors import CatalogError
from ...models.refresh import RefreshReport
from ..dependencies import RefresherDep
from ..errors import APIError


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/refresh", response_model=RefreshReport)
async def refresh_library(refresher: RefresherDep):
    """Reconcile the library with the catalog.

    Requests that arrive while a pass is running wait for it and get its report.
    """
    try:
        return await refresher.refresh()
    except CatalogError as e:
        logger.error("Refresh failed: %s", e)
        raise APIError.service_unavailable("Catalog unavailable, refresh aborted") from e
