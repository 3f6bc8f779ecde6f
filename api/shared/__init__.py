"""
Shared utilities for the response analyzer API.

This module contains the settings, logging and upstream relay used by every
proxy endpoint.
"""
from .relay import RetryPolicy, error_response, relay
from .settings import ProxySettings, get_settings

__all__ = [
    "relay",
    "error_response",
    "RetryPolicy",
    "ProxySettings",
    "get_settings",
]
