"""Remote drive access, folder resolution and candidate extraction."""

from .auth import AuthError, ClientCredentialsAuth
from .base import DriveClient, DriveError
from .extractor import CandidateExtractor
from .graph_client import GraphDriveClient
from .resolver import AmbiguousRootError, FolderResolver, RootNotFoundError
from .scanner import EntityScanFailure, FolderScanner, ScanResult

__all__ = [
    "AmbiguousRootError",
    "AuthError",
    "CandidateExtractor",
    "ClientCredentialsAuth",
    "DriveClient",
    "DriveError",
    "EntityScanFailure",
    "FolderResolver",
    "FolderScanner",
    "GraphDriveClient",
    "RootNotFoundError",
    "ScanResult",
]
