"""
Hub integrations
"""

from .hub_client import HubClient, HubApiError, HubNotFoundError
from .dynamic_content import RestHubClient

__all__ = [
    "HubClient",
    "HubApiError",
    "HubNotFoundError",
    "RestHubClient"
]
