from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.responses import RedirectResponse
import logging

from . import schemas, models
from .allocator import SlugAllocator, SlugRequest
from .db import get_db, get_store, ensure_tables
from .exceptions import SlugError
from .routes_slugs import http_error_for

router = APIRouter(tags=["links"])

logger = logging.getLogger(__name__)

# Allocation only probes, so a concurrent insert can still take the slug first.
LINK_INSERT_ATTEMPTS = 3


@router.post("/api/links", response_model=schemas.LinkOut)
def create_link(data: schemas.LinkCreate, db: Session = Depends(get_db), store=Depends(get_store)):
    ensure_tables()  # Ensure tables exist on first request
    allocator = SlugAllocator(store)
    request = SlugRequest(models.ShortLink.__tablename__, "slug", data.slug_length)

    for attempt in range(1, LINK_INSERT_ATTEMPTS + 1):
        try:
            slug = allocator.allocate(request)
        except SlugError as e:
            raise http_error_for(e) from e

        link = models.ShortLink(slug=slug, target=data.target)
        db.add(link)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Slug {slug!r} was taken before insert (attempt {attempt}/{LINK_INSERT_ATTEMPTS})")
            continue
        db.refresh(link)
        return link

    raise HTTPException(status_code=409, detail="Could not store a unique slug, try again")


@router.get("/api/links/{slug}", response_model=schemas.LinkOut)
def get_link(slug: str, db: Session = Depends(get_db)):
    ensure_tables()
    link = db.query(models.ShortLink).filter(models.ShortLink.slug == slug).first()
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")
    return link


@router.get("/l/{slug}")
def redirect_slug(slug: str, db: Session = Depends(get_db)):
    ensure_tables()
    link = db.query(models.ShortLink).filter(models.ShortLink.slug == slug).first()
    if not link:
        return RedirectResponse(url="/", status_code=302)
    return RedirectResponse(url=link.target, status_code=302)
