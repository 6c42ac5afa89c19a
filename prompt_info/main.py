import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prompt_info.core.config import settings, source_config_from_settings
from prompt_info.core.sources import SupabasePricingSource
from prompt_info.core.store import PricingStore, get_pricing_store
from prompt_info.routes.estimate import router as estimate_router
from prompt_info.routes.formats import router as formats_router
from prompt_info.routes.pricing import DATA_SOURCE_HEADER
from prompt_info.routes.pricing import router as pricing_router

logger = logging.getLogger(__name__)


def create_store() -> PricingStore:
    config = source_config_from_settings(settings)
    source = SupabasePricingSource(config) if config else None
    return PricingStore(source=source, fallback_path=settings.fallback_data_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "pricing_store", None) is None:
        app.state.pricing_store = create_store()
    snapshot = await app.state.pricing_store.reload()
    logger.info(
        "Pricing loaded: %d models from %s",
        len(snapshot.pricing),
        snapshot.provenance.value,
    )
    yield


app = FastAPI(
    title="Prompt Info API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=[DATA_SOURCE_HEADER],
)

app.include_router(pricing_router, prefix="/api")
app.include_router(estimate_router, prefix="/api")
app.include_router(formats_router, prefix="/api")


@app.get("/api/health")
async def health(store: PricingStore = Depends(get_pricing_store)):
    """Liveness plus where the resident pricing map came from."""
    snapshot = store.snapshot
    return {
        "status": "ok",
        "pricing_source": snapshot.provenance.value if snapshot else None,
        "models": len(snapshot.pricing) if snapshot else 0,
    }
