"""
Provider gateway for the Replicate prediction API.
"""
from .replicate import ProviderGateway, ReplicateClient

__all__ = ["ProviderGateway", "ReplicateClient"]
