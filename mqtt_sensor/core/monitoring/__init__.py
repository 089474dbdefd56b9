"""Monitoring layer - Métricas."""

from .stats import Stats

__all__ = ["Stats"]
