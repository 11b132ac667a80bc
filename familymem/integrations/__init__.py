"""
Remote memory store integrations
"""

from .mem0_client import Mem0Client

__all__ = ["Mem0Client"]
