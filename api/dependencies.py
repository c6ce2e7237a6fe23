# api/dependencies.py
"""
This module defines reusable dependencies for the API.

The relay and its collaborators are created once by the application lifespan
and stored on `app.state`; handlers receive them through these providers
instead of reaching for module-level globals.
"""
from fastapi import Request

from core.chat_orchestrator import StreamingRelay
from core.model_registry import ProviderRegistry


def get_relay(request: Request) -> StreamingRelay:
    return request.app.state.relay


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.relay.registry
