"""Order Manager - Groups incoming files and rotates them through a working directory."""

__version__ = "0.1.0"

from ordermanager.manager import OrderManager
from ordermanager.scanner import Scanner
from ordermanager.transfer import TransferCoordinator

__all__ = ["OrderManager", "Scanner", "TransferCoordinator"]
