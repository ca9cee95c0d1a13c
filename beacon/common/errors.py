"""
Error taxonomy shared by the adapters, the retriever and the server.
"""

from typing import Optional


class AdapterError(Exception):
    """Search against a source failed (auth, quota, network, payload)."""

    def __init__(self, message: str, source=None, status_code: Optional[int] = None):
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class GenerationError(Exception):
    """The language model call failed or is not configured."""
    pass
