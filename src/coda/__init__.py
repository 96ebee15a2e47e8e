"""Coda - AI code review service.

The interesting part lives in :mod:`coda.llm`: a provider-agnostic completion
layer with retry, fallback and Langfuse telemetry.
"""

__version__ = "0.1.0"
