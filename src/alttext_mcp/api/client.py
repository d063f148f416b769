#!/usr/bin/env python3
"""
AltText.ai REST client.

One method per API endpoint. Every public method returns an `ApiResult`
holding either the parsed record or a classified `AltTextApiError`.
"""
from __future__ import annotations

import functools
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar
from urllib.parse import quote

import requests
from urllib3.exceptions import ProtocolError

from alttext_mcp.api.errors import AltTextApiError
from alttext_mcp.api.models import (
    AccountRecord,
    ApiResult,
    BulkCreateResult,
    ImageList,
    ImageRecord,
    ScrapeResult,
)
from alttext_mcp.api.payload import Payload, query_params

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://alttext.ai/api/v1"
REQUEST_TIMEOUT = 120.0
CONNECT_TIMEOUT = 10.0
MAX_STALE_RETRIES = 1

# Raised when the server dropped a pooled keep-alive connection mid-request.
_STALE_CONNECTION_ERRORS = (
    BrokenPipeError,
    ConnectionResetError,
    ConnectionAbortedError,
    ProtocolError,
)

T = TypeVar("T")


def is_stale_connection(exc: BaseException) -> bool:
    """True when `exc`, or anything it wraps, says an open connection was closed under us."""
    seen = set()
    pending: List[BaseException] = [exc]
    while pending:
        err = pending.pop()
        if id(err) in seen:
            continue
        seen.add(id(err))
        if isinstance(err, _STALE_CONNECTION_ERRORS):
            return True
        pending.extend(a for a in err.args if isinstance(a, BaseException))
        for linked in (err.__cause__, err.__context__):
            if linked is not None:
                pending.append(linked)
    return False


def _asset_path(asset_id: str) -> str:
    return f"/images/{quote(asset_id, safe='')}"


def _as_result(method: Callable[..., T]) -> Callable[..., ApiResult[T]]:
    @functools.wraps(method)
    def wrapper(self: "AltTextClient", *args: Any, **kwargs: Any) -> ApiResult[T]:
        try:
            return ApiResult.success(method(self, *args, **kwargs))
        except AltTextApiError as e:
            return ApiResult.failure(e)

    return wrapper


class AltTextClient:
    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        client_version: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        connect_timeout: float = CONNECT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("AltText.ai API key is required")
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.client_version = client_version
        self.timeout: Tuple[float, float] = (connect_timeout, timeout)
        self.headers = {
            "X-API-Key": api_key,
            "Accept": "application/json",
        }
        if client_version:
            self.headers["X-Client"] = f"mcp-server/{client_version}"
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Any, session: Optional[requests.Session] = None) -> "AltTextClient":
        return cls(
            settings.api_key,
            base_url=settings.base_url,
            client_version=settings.client_version,
            timeout=settings.timeout,
            connect_timeout=settings.connect_timeout,
            session=session,
        )

    # -- Account --

    @_as_result
    def get_account(self) -> AccountRecord:
        data, _ = self._request("GET", "/account")
        return AccountRecord.from_dict(data)

    @_as_result
    def update_account(
        self,
        name: Optional[str] = None,
        webhook_url: Optional[str] = None,
        notification_email: Optional[str] = None,
    ) -> AccountRecord:
        account = Payload().add("name", name).add("webhook_url", webhook_url)
        account.add("notification_email", notification_email)
        data, _ = self._request("PATCH", "/account", body={"account": account})
        return AccountRecord.from_dict(data)

    # -- Image library --

    @_as_result
    def list_images(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        lang: Optional[str] = None,
        url: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> ImageList:
        query = query_params(page=page, limit=limit, lang=lang, url=url, sort=sort, direction=direction)
        data, headers = self._request("GET", "/images", query=query)
        return ImageList.from_response(data, headers)

    @_as_result
    def search_images(self, query: str, limit: Optional[int] = None, lang: Optional[str] = None) -> ImageList:
        params = query_params(q=query, limit=limit, lang=lang)
        data, headers = self._request("GET", "/images/search", query=params)
        return ImageList.from_response(data, headers)

    @_as_result
    def get_image(self, asset_id: str, lang: Optional[str] = None) -> ImageRecord:
        data, _ = self._request("GET", _asset_path(asset_id), query=query_params(lang=lang))
        return ImageRecord.from_dict(data)

    @_as_result
    def create_image(self, url: str, **options: Any) -> ImageRecord:
        return self._generate(Payload(url=url), **options)

    @_as_result
    def create_image_from_raw(self, raw: str, **options: Any) -> ImageRecord:
        return self._generate(Payload(raw=raw), **options)

    @_as_result
    def translate_image(self, asset_id: str, lang: str) -> ImageRecord:
        body = {"image": {"asset_id": asset_id}, "lang": lang, "async": False}
        data, _ = self._request("POST", "/images", body=body)
        return ImageRecord.from_dict(data)

    @_as_result
    def update_image(
        self,
        asset_id: str,
        alt_text: Optional[str] = None,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        lang: Optional[str] = None,
        overwrite: Optional[bool] = None,
    ) -> ImageRecord:
        image = Payload().add("alt_text", alt_text).add("tags", tags).add("metadata", metadata)
        body = Payload(image=image).add("lang", lang).add("overwrite", overwrite)
        data, _ = self._request("PATCH", _asset_path(asset_id), body=body)
        return ImageRecord.from_dict(data)

    @_as_result
    def delete_image(self, asset_id: str) -> None:
        self._request("DELETE", _asset_path(asset_id))
        return None

    # -- Bulk / scrape --

    @_as_result
    def bulk_create(self, csv_bytes: bytes, filename: str = "images.csv", email: Optional[str] = None) -> BulkCreateResult:
        files = {"file": (filename, csv_bytes, "text/csv")}
        form = Payload().add("email", email or None)
        data, _ = self._request("POST", "/images/bulk_create", files=files, form=form)
        return BulkCreateResult.from_dict(data)

    @_as_result
    def scrape_page(
        self,
        url: str,
        html: Optional[str] = None,
        include_existing: Optional[bool] = None,
        lang: Optional[str] = None,
        keywords: Optional[List[str]] = None,
        negative_keywords: Optional[List[str]] = None,
        gpt_prompt: Optional[str] = None,
        max_chars: Optional[int] = None,
        overwrite: Optional[bool] = None,
    ) -> ScrapeResult:
        body = Payload(page_scrape=Payload(url=url).add("html", html))
        body.extend([
            ("include_existing", include_existing),
            ("lang", lang),
            ("keywords", keywords),
            ("negative_keywords", negative_keywords),
            ("gpt_prompt", gpt_prompt),
            ("max_chars", max_chars),
            ("overwrite", overwrite),
        ])
        data, _ = self._request("POST", "/images/page_scrape", body=body)
        return ScrapeResult.from_dict(data)

    # -- Internals --

    def _generate(
        self,
        source: Payload,
        *,
        asset_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        lang: Optional[str] = None,
        keywords: Optional[List[str]] = None,
        negative_keywords: Optional[List[str]] = None,
        gpt_prompt: Optional[str] = None,
        max_chars: Optional[int] = None,
        overwrite: Optional[bool] = None,
    ) -> ImageRecord:
        image = source.add("asset_id", asset_id).add("tags", tags).add("metadata", metadata)
        body = Payload(image=image)
        body["async"] = False
        body.extend([
            ("lang", lang),
            ("keywords", keywords),
            ("negative_keywords", negative_keywords),
            ("gpt_prompt", gpt_prompt),
            ("max_chars", max_chars),
            ("overwrite", overwrite),
        ])
        data, _ = self._request("POST", "/images", body=body)
        return ImageRecord.from_dict(data)

    def _request(
        self,
        method: str,
        path: str,
        *,
        query: Optional[Mapping[str, str]] = None,
        body: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[Dict[str, Any], Mapping[str, str]]:
        url = f"{self.base_url}{path}"
        headers = dict(self.headers)
        kwargs: Dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if query:
            kwargs["params"] = dict(query)
        if body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(body, separators=(",", ":"))
        if files is not None:
            # requests sets the multipart Content-Type with its boundary
            kwargs["files"] = files
            kwargs["data"] = dict(form or {})

        attempt = 0
        while True:
            logger.debug(f"{method} {path} (attempt {attempt + 1})")
            try:
                response = self._session.request(method, url, **kwargs)
                break
            except (requests.exceptions.RequestException, OSError) as e:
                if attempt < MAX_STALE_RETRIES and is_stale_connection(e):
                    attempt += 1
                    logger.warning(f"Connection closed during {method} {path}, retrying on a fresh connection: {e}")
                    self._drop_connections()
                    continue
                logger.error(f"Request to AltText.ai failed ({method} {path}): {e}")
                raise AltTextApiError.connection_error(e) from e

        return self._handle_response(response), response.headers

    def _handle_response(self, response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        status = response.status_code
        if not 200 <= status < 300:
            err = AltTextApiError.from_response(status, data)
            logger.info(f"AltText.ai API error {status}: {err.message}")
            raise err
        return data

    def _drop_connections(self) -> None:
        # Session stays usable; adapters rebuild their pools on the next request.
        self._session.close()
