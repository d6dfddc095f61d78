"""HTTP service exposing the webhook and bulk-generation endpoints."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
