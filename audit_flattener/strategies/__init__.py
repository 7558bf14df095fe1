"""
Discovery strategies for the audit flattener.

This module re-exports the abstract interfaces and the concrete strategy classes
so downstream code can import from `audit_flattener.strategies` directly.
"""

from audit_flattener.strategies.abstract import (
    AbstractDiscoveryStrategy,
    DiscoveryResult,
    DiscoveryStrategy,
)
from audit_flattener.strategies.exhaustive import ExhaustiveStrategy
from audit_flattener.strategies.sampled import SampledStrategy

__all__ = [
    # Abstracts
    "AbstractDiscoveryStrategy",
    "DiscoveryResult",
    "DiscoveryStrategy",
    # Concrete strategies
    "ExhaustiveStrategy",
    "SampledStrategy",
]
