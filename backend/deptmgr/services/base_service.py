"""
Base service class.
Services contain business logic and coordinate the remote directory client.
"""

from abc import ABC


class BaseService(ABC):
    """Base service class for all services."""
    pass
