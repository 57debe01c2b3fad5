"""
Base controller class.
Controllers sit between the presentation layer and the services.
"""

from abc import ABC


class BaseController(ABC):
    """Base class for presentation-facing controllers."""
    pass
