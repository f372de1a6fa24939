"""OVH Diagnostic Bot — OVH API Package.

Components:
  - OvhClient: Signed async client for the OVH REST API
  - OvhClientFactory: Per-user client construction from the user store
  - OvhApiError: Error raised for every failed call
"""

from src.ovh.client import OvhClient, OvhClientFactory, compute_signature, resolve_endpoint
from src.ovh.errors import OvhApiError, is_not_found

__all__ = [
    "OvhClient",
    "OvhClientFactory",
    "OvhApiError",
    "compute_signature",
    "is_not_found",
    "resolve_endpoint",
]
