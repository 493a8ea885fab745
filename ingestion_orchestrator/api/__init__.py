"""
HTTP API package for Ingestion Orchestrator
"""

from .server import create_app

__all__ = ["create_app"]
