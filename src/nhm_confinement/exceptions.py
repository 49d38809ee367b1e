"""
Exceptions raised by the confinement pipeline.
"""

from typing import Iterable, Optional

from .config import NETWORK_OPTIONS, NEIGHBOR_OPTIONS


class ConfigurationError(ValueError):
    """Exception raised when a pipeline option is not one of its accepted values."""
    def __init__(self, message: str, option: Optional[str] = None):
        """Initialize the error.

        Args:
            message: Error message
            option: Name of the offending argument, if known
        """
        self.message = message
        self.option = option
        super().__init__(self.message)


def check_network(network: str) -> str:
    if network not in NETWORK_OPTIONS:
        raise ConfigurationError(
            "The network argument accepts 'nhdv2' or 'nhm'. Please check "
            "that the requested network matches one of these two options.",
            option="network"
        )
    return network


def check_neighbors(neighbors: str) -> str:
    if neighbors not in NEIGHBOR_OPTIONS:
        raise ConfigurationError(
            "The neighbors argument accepts 'upstream', 'downstream', or "
            "'nearest'. Please check that the requested method matches one "
            "of these three options.",
            option="neighbors"
        )
    return neighbors


def check_columns(columns: Iterable[str], required: Iterable[str], table: str) -> None:
    """Raise ValueError naming any required column absent from `columns`."""
    present = set(columns)
    missing = [col for col in required if col not in present]
    if missing:
        raise ValueError(f"Missing required columns in {table}: {missing}")
