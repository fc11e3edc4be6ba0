import logging
from datetime import date

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from quote_tool import __version__
from quote_tool.engine import QuoteRequest, generate_quote_number, InvalidParameterError, ConfigurationError
from quote_tool.api.drafts_api import router as drafts_router
from quote_tool.api.state import engine, draft_service

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Quote Tool API",
    description="Backend API for quote pricing and line-item editing",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include draft editing API
app.include_router(drafts_router)


class CalcRequest(BaseModel):
    services: List[Dict[str, Any]] = []
    goods: List[Dict[str, Any]] = []
    custom_items: List[Dict[str, Any]] = []
    final_price_override: Optional[float] = None
    business_type: str = "SERVICE"


@app.get("/")
async def root():
    return {"status": "online", "message": "Quote Tool API Active"}


@app.post("/quotes/calculate")
async def calculate_quote(req: CalcRequest):
    try:
        request = QuoteRequest.from_dict(req.model_dump())
        quote_number = generate_quote_number(req.business_type, date.today())
        result = engine.calculate(request, quote_number=quote_number)
        return jsonable_encoder(result.to_dict())
    except InvalidParameterError as e:
        logger.warning("Rejected quote request: %s", e)
        raise HTTPException(status_code=422, detail=str(e))
    except ConfigurationError as e:
        logger.exception("Pricing configuration error")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/policy")
async def get_policy():
    return {
        "categories": engine.rate_table.to_dict(),
        "coefficients": engine.resolver.to_dict(),
        "quote_policy": engine.policy.to_dict(),
    }


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "version": __version__,
        "categories_count": len(engine.rate_table.categories()),
        "open_drafts": len(draft_service.list_drafts()),
        "policy_source": str(engine.settings.policy_workbook or engine.settings.data_dir) if engine.settings else None,
    }
