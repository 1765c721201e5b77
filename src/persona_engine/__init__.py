"""Persona engine package."""

from .api.handler import ChatHandler, ChatRequest, HandlerResponse
from .config.settings import SystemConfig, default_config, load_config
from .engine import ConversationService, PersonaEngine, build_service, build_store

__all__ = [
    "ChatHandler",
    "ChatRequest",
    "HandlerResponse",
    "SystemConfig",
    "default_config",
    "load_config",
    "ConversationService",
    "PersonaEngine",
    "build_service",
    "build_store",
]
