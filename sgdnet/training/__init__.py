"""Error functions and the gradient-descent network."""

from .losses import ERRORS, ErrorFunction, ErrorRegistry, Loss
from .network import Network, dump, load

__all__ = ["ERRORS", "ErrorFunction", "ErrorRegistry", "Loss", "Network", "dump", "load"]
