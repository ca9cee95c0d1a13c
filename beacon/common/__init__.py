"""
Beacon Common Module

Shared infrastructure for the source adapters, retriever and server.
"""

from .config import BeaconConfig, load_config
from .llm_client import LLMClient

__all__ = [
    "BeaconConfig",
    "load_config",
    "LLMClient",
]
