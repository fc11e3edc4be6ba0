"""Engine subpackage - quote pricing, line items and totals."""
from .aggregator import QuoteAggregator, QuotePolicy
from .coefficients import CoefficientResolver, Coefficients
from .errors import ConfigurationError, InvalidParameterError, QuoteEngineError
from .line_builders import ServiceLineBuilder, GoodsLineBuilder
from .line_item_store import LineItemStore
from .models import (
    ServiceSpec, GoodsItem, LineItem, QuoteTotals, QuoteRequest, QuoteResult,
    FloorAccess, Urgency, Difficulty, LineSource,
)
from .quote_engine import QuoteEngine, generate_quote_number
from .rate_table import RateTable

__all__ = [
    'QuoteEngine', 'generate_quote_number',
    'RateTable', 'CoefficientResolver', 'Coefficients',
    'ServiceLineBuilder', 'GoodsLineBuilder', 'LineItemStore',
    'QuoteAggregator', 'QuotePolicy',
    'ServiceSpec', 'GoodsItem', 'LineItem', 'QuoteTotals', 'QuoteRequest', 'QuoteResult',
    'FloorAccess', 'Urgency', 'Difficulty', 'LineSource',
    'ConfigurationError', 'InvalidParameterError', 'QuoteEngineError',
]
