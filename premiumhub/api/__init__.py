"""HTTP API exposing the provider layer under /api/v2."""

from premiumhub.api.main import app, create_app

__all__ = ["app", "create_app"]
