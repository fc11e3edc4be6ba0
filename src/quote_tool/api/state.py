"""Shared engine and draft service instances for the API."""
from ..engine import QuoteEngine
from ..services.draft_service import DraftService

engine = QuoteEngine()
draft_service = DraftService(engine)
