"""Integrations with the hosted backend."""

from talebox.infrastructure.integrations.http_pool import HttpClientPool
from talebox.infrastructure.integrations.storage_client import StorageClient

__all__ = ["HttpClientPool", "StorageClient"]
