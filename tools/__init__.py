# Tools package
"""
REST API clients for the National Weather Service and DigitalOcean App Platform.

All clients share:
- One async HTTP request per call with httpx
- Normalized Success/Failure outcomes instead of exceptions
- Text formatting of responses for tool output
"""

from .credentials import CredentialResolver
from .http_client import ApiClient, RequestDescriptor, Success, Failure, FailureKind
from .weather_client import WeatherClient
from .digitalocean_client import AppPlatformClient

__all__ = [
    "CredentialResolver",
    "ApiClient",
    "RequestDescriptor",
    "Success",
    "Failure",
    "FailureKind",
    "WeatherClient",
    "AppPlatformClient",
]
