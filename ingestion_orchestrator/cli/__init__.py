"""
CLI package for Ingestion Orchestrator

Provides the command-line interface for serving, submitting and inspecting submissions.
"""

from .main import main, cli

__all__ = ["main", "cli"]
