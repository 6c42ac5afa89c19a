from dataclasses import asdict

from fastapi import APIRouter

from prompt_info.core.formats import build_formats
from prompt_info.models.schemas import FormatCardResponse, FormatsRequest

router = APIRouter(prefix="/formats", tags=["formats"])


@router.post("", response_model=list[FormatCardResponse])
async def render_formats(body: FormatsRequest):
    """The prompt rendered as TOON, JSON, YAML, XML and CSV."""
    return [FormatCardResponse(**asdict(card)) for card in build_formats(body.prompt)]
