import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.api.v1.endpoints import categories, maintenance, products
from app.core.config import settings
from app.core.exceptions import CatalogError
from app.crud.catalog_repository import CatalogRepository
from app.db.session import AsyncSessionLocal
from app.logging_config import setup_logging
from app.services.count_synchronizer import CountSynchronizer
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.RECOMPUTE_COUNTS_ON_STARTUP:
        try:
            async with AsyncSessionLocal() as db:
                summary = await CountSynchronizer(CatalogRepository(db)).recompute_all()
            logger.info(
                "Category product counts initialized",
                extra={"updated": summary.updated, "total_categories": summary.total_categories}
            )
        except Exception:
            # Counts self-heal on the next maintenance run
            logger.exception("Failed to initialize category product counts")
    yield

app = FastAPI(
    title="Catalog Tree Service",
    lifespan=lifespan
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    logger.warning(
        f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
        extra={"details": exc.details}
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "type": exc.__class__.__name__,
            "details": exc.details,
        }
    )


app.include_router(categories.router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(maintenance.router, prefix="/api/v1/maintenance", tags=["Maintenance"])
