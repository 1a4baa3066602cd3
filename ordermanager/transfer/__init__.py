"""Transfer of a selected group from the source to the target directory."""

from .coordinator import TransferCoordinator
from .models import TransferOutcome, TransferReport, TransferStep

__all__ = [
    "TransferCoordinator",
    "TransferOutcome",
    "TransferReport",
    "TransferStep",
]
