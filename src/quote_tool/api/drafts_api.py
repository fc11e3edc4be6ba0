"""
Drafts API - FastAPI router for editing quotes line by line.
"""
import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Any, Optional

from ..engine import QuoteRequest, InvalidParameterError, ConfigurationError
from .state import draft_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])


# Pydantic models for API
class DraftCreate(BaseModel):
    """Request model for opening a draft. Rows are coerced leniently by the engine."""
    services: list[dict[str, Any]] = []
    goods: list[dict[str, Any]] = []
    custom_items: list[dict[str, Any]] = []
    final_price_override: Optional[float] = None
    business_type: str = "SERVICE"


class LineCreate(BaseModel):
    """Request model for adding a custom line."""
    description: str = "Custom service"
    detail: str = ""
    quantity: float = 1
    unit_price: float = 0.0


class LineUpdate(BaseModel):
    """Request model for editing a line. Send one price field per edit."""
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    adjust_factor: Optional[float] = None
    description: Optional[str] = None
    detail: Optional[str] = None


class OverrideUpdate(BaseModel):
    """Request model for the final price override (null clears it)."""
    final_price_override: Optional[float] = None


# Endpoints

@router.post("")
async def create_draft(body: DraftCreate):
    """Open a draft seeded with priced services and goods."""
    try:
        request = QuoteRequest.from_dict(body.model_dump())
        draft = draft_service.create_draft(request, prefix=body.business_type)
    except InvalidParameterError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ConfigurationError as e:
        logger.exception("Pricing configuration error while opening draft")
        raise HTTPException(status_code=500, detail=str(e))
    return draft_service.summarize(draft.draft_id)


@router.get("")
async def list_drafts():
    """List open drafts."""
    return [
        {"draft_id": d.draft_id, "quote_number": d.quote_number, "lines": len(d.store), "created_at": d.created_at}
        for d in draft_service.list_drafts()
    ]


@router.get("/{draft_id}")
async def get_draft(draft_id: str):
    """Get a draft with recomputed totals."""
    try:
        return draft_service.summarize(draft_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{draft_id}")
async def delete_draft(draft_id: str):
    """Discard a draft."""
    try:
        draft_service.delete_draft(draft_id)
        return {"success": True, "message": f"Draft '{draft_id}' deleted"}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{draft_id}/lines")
async def add_line(draft_id: str, body: LineCreate):
    """Add a custom line to a draft."""
    try:
        draft_service.add_line(draft_id, **body.model_dump())
        return draft_service.summarize(draft_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{draft_id}/lines/{line_id}")
async def edit_line(draft_id: str, line_id: str, body: LineUpdate):
    """Edit one field of a line; the store derives the dependent field."""
    try:
        draft_service.get_draft(draft_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        draft_service.edit_line(draft_id, line_id, body.model_dump(exclude_unset=True))
    except ValueError as e:
        status = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))
    return draft_service.summarize(draft_id)


@router.delete("/{draft_id}/lines/{line_id}")
async def remove_line(draft_id: str, line_id: str):
    """Remove a line; unknown line ids are ignored."""
    try:
        draft_service.remove_line(draft_id, line_id)
        return draft_service.summarize(draft_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{draft_id}/override")
async def set_override(draft_id: str, body: OverrideUpdate):
    """Set or clear the manual final price."""
    try:
        draft_service.set_final_price_override(draft_id, body.final_price_override)
        return draft_service.summarize(draft_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
