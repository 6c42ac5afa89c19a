import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from prompt_info.core.sources import Provenance
from prompt_info.core.store import PricingStore, get_pricing_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])

DATA_SOURCE_HEADER = "x-data-source"


@router.get("")
async def get_pricing(store: PricingStore = Depends(get_pricing_store)):
    """Return the pricing map, freshly resolved; the source is in ``x-data-source``."""
    snapshot = await store.reload()
    headers = {DATA_SOURCE_HEADER: snapshot.provenance.header_value}

    if snapshot.provenance is Provenance.UNAVAILABLE:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": snapshot.error},
            headers=headers,
        )

    return JSONResponse(content=snapshot.as_json(), headers=headers)
