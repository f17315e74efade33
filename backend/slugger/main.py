from fastapi import FastAPI
import logging
import os

from .routes_slugs import router as slugs_router
from .routes_links import router as links_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Slugger API")

app.include_router(slugs_router)
app.include_router(links_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
