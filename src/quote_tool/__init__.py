"""
Quote Tool Package

Quote pricing and line-item engine for cleaning services and goods.
Resolves quotations using Rate Table → Coefficients → Line Items → Totals.
"""

__version__ = "2.0.0"
