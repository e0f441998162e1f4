from .server import ConnectionHandle
from .spot import Spot, SpotParseError, parse_spot
from .loader import ClusterCatalogLoader

__all__ = ["ConnectionHandle",
           "Spot",
           "SpotParseError",
           "parse_spot",
           "ClusterCatalogLoader"]
