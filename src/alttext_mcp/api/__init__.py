from .client import AltTextClient, is_stale_connection
from .errors import AltTextApiError, ConfigError, LocalValidationError
from .models import (
    AccountRecord,
    ApiResult,
    BulkCreateResult,
    ImageList,
    ImageRecord,
    Pagination,
    ScrapedImage,
    ScrapeResult,
)

__all__ = [
    "AltTextClient",
    "is_stale_connection",
    "AltTextApiError",
    "ConfigError",
    "LocalValidationError",
    "AccountRecord",
    "ApiResult",
    "BulkCreateResult",
    "ImageList",
    "ImageRecord",
    "Pagination",
    "ScrapedImage",
    "ScrapeResult",
]
