import logging

from fastapi import APIRouter, Depends

from prompt_info.core.config import settings
from prompt_info.core.pricing import compute_metrics, metadata_display_items, select_model
from prompt_info.core.store import PricingStore, get_pricing_store
from prompt_info.core.tokenizer import (
    Tokenizer,
    count_tokens,
    default_tokenizer,
    token_pieces,
    token_slices,
)
from prompt_info.models.schemas import (
    EstimateRequest,
    EstimateResponse,
    MetricsResponse,
    TokenPieceResponse,
    TokensRequest,
    TokensResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["estimate"])


@router.post("/estimate", response_model=EstimateResponse)
async def estimate(
    body: EstimateRequest,
    store: PricingStore = Depends(get_pricing_store),
    tokenizer: Tokenizer = Depends(default_tokenizer),
):
    """Token count, cost and CO2e for a prompt against one model."""
    snapshot = await store.current()
    model = select_model(snapshot.pricing, body.model)
    entry = snapshot.pricing.get(model) if model else None

    token_count = count_tokens(tokenizer, body.prompt)
    metrics = compute_metrics(
        entry,
        token_count,
        body.expected_output_tokens,
        baseline_factor=settings.co2e_baseline_factor,
    )
    if model and entry is None:
        logger.info("No pricing entry for model %r; withholding cost", model)

    return EstimateResponse(
        model=model,
        known_model=entry is not None,
        source=snapshot.provenance.value,
        metrics=MetricsResponse(
            token_count=metrics.token_count,
            input_cost=metrics.input_cost,
            output_cost=metrics.output_cost,
            total_cost=metrics.total_cost,
            co2e_grams=metrics.co2e_grams,
            co2e_per_thousand_tokens=metrics.co2e_per_thousand_tokens,
            used_fallback_emission_factor=metrics.used_fallback_emission_factor,
        ),
        provider=entry.provider if entry else None,
        description=entry.description if entry else None,
        avg_output_tokens=entry.avg_output_tokens if entry else None,
        metadata=metadata_display_items(entry),
        notice=snapshot.notice,
    )


@router.post("/tokens", response_model=TokensResponse)
async def tokens(
    body: TokensRequest,
    tokenizer: Tokenizer = Depends(default_tokenizer),
):
    """Token ids with their decoded text, plus the ten-slice overview."""
    ids = tokenizer.encode(body.prompt) if body.prompt else []
    return TokensResponse(
        token_count=len(ids),
        tokens=[TokenPieceResponse(id=p.id, text=p.text) for p in token_pieces(tokenizer, ids)],
        slices=token_slices(ids),
    )
