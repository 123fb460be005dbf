"""Protocol endpoints and the network transport serving them."""

from .endpoint import Endpoint, EndpointTable
from .http import create_app, run_server

__all__ = [
    "Endpoint",
    "EndpointTable",
    "create_app",
    "run_server",
]
