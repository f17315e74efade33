from fastapi import APIRouter, Depends, HTTPException, Request
import logging

from . import schemas
from .allocator import SlugAllocator, SlugRequest
from .auth import require_token_from_request
from .db import get_store
from .exceptions import (
    InvalidLength,
    QueryExecutionFailed,
    QuotingFailed,
    RandomSourceUnavailable,
    SlugError,
)

router = APIRouter(prefix="/api/slugs", tags=["slugs"])

logger = logging.getLogger(__name__)


def http_error_for(e: SlugError) -> HTTPException:
    """Map an allocation failure to the HTTP error returned to API clients."""
    if isinstance(e, InvalidLength):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, QuotingFailed):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, QueryExecutionFailed):
        # Backend diagnostics may name tables or hosts; keep them in the logs
        return HTTPException(status_code=400, detail="Slug lookup failed for the given table and column")
    if isinstance(e, RandomSourceUnavailable):
        return HTTPException(status_code=503, detail="Secure random source unavailable")
    return HTTPException(status_code=500, detail="Slug allocation failed")


@router.post("", response_model=schemas.SlugOut)
def create_slug(data: schemas.SlugCreate, request: Request, store=Depends(get_store)):
    """Allocate a slug unused in the given table and column. Nothing is inserted."""
    payload = require_token_from_request(request)
    try:
        slug = SlugAllocator(store).allocate(SlugRequest(data.table, data.column, data.length))
    except SlugError as e:
        logger.warning(f"Slug allocation for {payload.get('sub')!r} failed: {e}")
        raise http_error_for(e) from e
    return {"slug": slug}
