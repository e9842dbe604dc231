"""Inbound adapters for the CAS Store.

Provides the storage node REST API and the round-robin dispatcher.
"""

from cas_store.adapters.inbound.dispatcher import RoundRobinSelector, create_dispatcher_app
from cas_store.adapters.inbound.rest_api import create_app

__all__ = [
    "RoundRobinSelector",
    "create_app",
    "create_dispatcher_app",
]
