from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar, Union

from alttext_mcp.api.errors import AltTextApiError

T = TypeVar("T")

Number = Union[int, float]


def _opt_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _opt_int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _opt_bool(data: Mapping[str, Any], key: str) -> Optional[bool]:
    value = data.get(key)
    return value if isinstance(value, bool) else None


def _opt_str_list(data: Mapping[str, Any], key: str) -> Optional[List[str]]:
    value = data.get(key)
    if not isinstance(value, list):
        return None
    return [str(v) for v in value]


def _opt_errors(data: Mapping[str, Any]) -> Optional[Dict[str, List[str]]]:
    value = data.get("errors")
    if not isinstance(value, dict):
        return None
    out: Dict[str, List[str]] = {}
    for k, v in value.items():
        if isinstance(v, list):
            out[str(k)] = [str(m) for m in v]
        elif v is not None:
            out[str(k)] = [str(v)]
    return out


@dataclass(frozen=True)
class ImageRecord:
    asset_id: str
    alt_text: Optional[str] = None
    url: Optional[str] = None
    alt_texts: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[Number] = None
    error_code: Optional[str] = None
    errors: Optional[Dict[str, List[str]]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageRecord":
        alt_texts = data.get("alt_texts")
        metadata = data.get("metadata")
        created_at = data.get("created_at")
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            created_at = None
        return cls(
            asset_id=str(data.get("asset_id", "")),
            alt_text=_opt_str(data, "alt_text"),
            url=_opt_str(data, "url"),
            # dicts keep the response's insertion order
            alt_texts={str(k): str(v) for k, v in alt_texts.items()} if isinstance(alt_texts, dict) else None,
            tags=_opt_str_list(data, "tags"),
            metadata=dict(metadata) if isinstance(metadata, dict) else None,
            created_at=created_at,
            error_code=_opt_str(data, "error_code"),
            errors=_opt_errors(data),
        )


@dataclass(frozen=True)
class AccountRecord:
    name: Optional[str] = None
    usage: Optional[int] = None
    usage_limit: Optional[int] = None
    default_lang: Optional[str] = None
    gpt_prompt: Optional[str] = None
    max_chars: Optional[int] = None
    webhook_url: Optional[str] = None
    notification_email: Optional[str] = None
    whitelabel: Optional[bool] = None
    no_quotes: Optional[bool] = None
    ending_period: Optional[bool] = None
    remove_symbols: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccountRecord":
        return cls(
            name=_opt_str(data, "name"),
            usage=_opt_int(data, "usage"),
            usage_limit=_opt_int(data, "usage_limit"),
            default_lang=_opt_str(data, "default_lang"),
            gpt_prompt=_opt_str(data, "gpt_prompt"),
            max_chars=_opt_int(data, "max_chars"),
            webhook_url=_opt_str(data, "webhook_url"),
            notification_email=_opt_str(data, "notification_email"),
            whitelabel=_opt_bool(data, "whitelabel"),
            no_quotes=_opt_bool(data, "no_quotes"),
            ending_period=_opt_bool(data, "ending_period"),
            remove_symbols=_opt_bool(data, "remove_symbols"),
        )


def _header_int(headers: Mapping[str, str], name: str, default: int) -> int:
    raw = headers.get(name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class Pagination:
    current_page: int = 1
    page_items: int = 20
    total_pages: int = 1
    total_count: int = 0

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "Pagination":
        """Read the pagination headers; missing or non-numeric ones keep their defaults."""
        return cls(
            current_page=_header_int(headers, "current-page", 1),
            page_items=_header_int(headers, "page-items", 20),
            total_pages=_header_int(headers, "total-pages", 1),
            total_count=_header_int(headers, "total-count", 0),
        )


@dataclass(frozen=True)
class ImageList:
    images: List[ImageRecord]
    pagination: Pagination = field(default_factory=Pagination)

    @classmethod
    def from_response(cls, data: Mapping[str, Any], headers: Mapping[str, str]) -> "ImageList":
        raw_images = data.get("images")
        images = [ImageRecord.from_dict(i) for i in raw_images or [] if isinstance(i, dict)]
        return cls(images=images, pagination=Pagination.from_headers(headers))


@dataclass(frozen=True)
class ScrapedImage:
    src: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    skip_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScrapedImage":
        return cls(
            src=_opt_str(data, "src"),
            width=_opt_int(data, "width"),
            height=_opt_int(data, "height"),
            skip_reason=_opt_str(data, "skip_reason"),
        )


@dataclass(frozen=True)
class ScrapeResult:
    scraped_images: List[ScrapedImage]
    total_processed: int = 0
    errors: Optional[Dict[str, List[str]]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScrapeResult":
        raw = data.get("scraped_images")
        return cls(
            scraped_images=[ScrapedImage.from_dict(i) for i in raw or [] if isinstance(i, dict)],
            total_processed=_opt_int(data, "total_processed") or 0,
            errors=_opt_errors(data),
        )


@dataclass(frozen=True)
class BulkCreateResult:
    rows: Optional[int] = None
    row_errors: Optional[List[str]] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BulkCreateResult":
        return cls(
            rows=_opt_int(data, "rows"),
            row_errors=_opt_str_list(data, "row_errors"),
            error=_opt_str(data, "error"),
        )


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Outcome of one client call: either `value` or a classified `error`."""

    value: Optional[T] = None
    error: Optional[AltTextApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ApiResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AltTextApiError) -> "ApiResult[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
