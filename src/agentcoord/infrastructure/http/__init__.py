"""HTTP transport (FastAPI)."""

from agentcoord.infrastructure.http.app import create_app

__all__ = ["create_app"]
