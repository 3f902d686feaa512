"""Single-use scan tokens gating anonymous public writes."""

from restaurant_hub.scan_tokens.models import (
    IssuedToken,
    ScanTokenRecord,
    TokenCheck,
    generate_scan_token,
)
from restaurant_hub.scan_tokens.service import ScanTokenService
from restaurant_hub.scan_tokens.store import InMemoryScanTokenStore, ScanTokenStore

__all__ = [
    "InMemoryScanTokenStore",
    "IssuedToken",
    "ScanTokenRecord",
    "ScanTokenService",
    "ScanTokenStore",
    "TokenCheck",
    "generate_scan_token",
]
