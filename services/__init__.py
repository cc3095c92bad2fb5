# services/__init__.py
# Provider-facing services for the prediction engine

from .injury_service import InjuryProvider, InjuryService

__all__ = [
    "InjuryProvider",
    "InjuryService",
]
