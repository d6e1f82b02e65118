"""Platform layer — identifier parsing and one API client per hosting platform, no DB access."""

from reporadar.platforms.client import PlatformClient
from reporadar.platforms.errors import (
    HttpError,
    InvalidFormat,
    InvalidResponse,
    InvalidToken,
    InvalidURL,
    NetworkError,
    NotFound,
    PlatformError,
    RateLimited,
    UnsupportedPlatform,
)
from reporadar.platforms.factory import ClientRegistry, client_for, create_client
from reporadar.platforms.models import (
    ActivityMetrics,
    Capability,
    IssueInfo,
    Platform,
    ReleaseInfo,
    RepositoryIdentifier,
    RepositoryInfo,
)
from reporadar.platforms.parser import parse

__all__ = [
    "ActivityMetrics",
    "Capability",
    "ClientRegistry",
    "HttpError",
    "InvalidFormat",
    "InvalidResponse",
    "InvalidToken",
    "InvalidURL",
    "IssueInfo",
    "NetworkError",
    "NotFound",
    "Platform",
    "PlatformClient",
    "PlatformError",
    "RateLimited",
    "ReleaseInfo",
    "RepositoryIdentifier",
    "RepositoryInfo",
    "UnsupportedPlatform",
    "client_for",
    "create_client",
    "parse",
]
