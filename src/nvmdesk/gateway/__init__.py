"""Installer backend client module."""

from .http_gateway import GatewayError, HttpInstallerGateway
from .inventory import InventoryCache, InventorySource

__all__ = ["GatewayError", "HttpInstallerGateway", "InventoryCache", "InventorySource"]
