"""Workflow orchestration for reading intake channels and aggregating leads."""

from .service import AggregationError, AggregationResult, LeadAggregationService, SourceReadResult

__all__ = ["AggregationError", "AggregationResult", "LeadAggregationService", "SourceReadResult"]
