"""On-chain access to a deployed Distributor."""

from .client import DistributorClient, map_revert

__all__ = ["DistributorClient", "map_revert"]
