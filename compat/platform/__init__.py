"""Side-effecting adapters: subprocesses and HTTP."""

from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from .process import ProcessError, Runner, run

__all__ = [
    # http
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # process
    "ProcessError",
    "Runner",
    "run",
]
