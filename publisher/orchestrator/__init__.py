"""Orchestrator package - coordinates publishing workflows."""
from .core import PublishOrchestrator

__all__ = ["PublishOrchestrator"]
