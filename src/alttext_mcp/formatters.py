from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional

from alttext_mcp.api.errors import AltTextApiError
from alttext_mcp.api.models import (
    AccountRecord,
    BulkCreateResult,
    ImageList,
    ImageRecord,
    ScrapeResult,
)

ASYNC_NOTE = (
    "Note: Images are being processed asynchronously. "
    "Use list_images or get_image to check results."
)


def _flatten(errors: Optional[Dict[str, List[str]]]) -> str:
    return ", ".join(m for messages in (errors or {}).values() for m in messages)


def _iso_timestamp(epoch_seconds: float) -> str:
    # Millisecond precision, UTC, trailing Z
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _flag(value: Optional[bool]) -> str:
    return "true" if value else "false"


def format_image(image: ImageRecord) -> str:
    lines = [
        f"Asset ID: {image.asset_id}",
        f"Alt text: {image.alt_text if image.alt_text is not None else '(none)'}",
    ]
    if image.url:
        lines.append(f"URL: {image.url}")
    if image.alt_texts:
        lines.append("Languages:")
        for lang, text in image.alt_texts.items():
            lines.append(f"  {lang}: {text}")
    if image.tags:
        lines.append(f"Tags: {', '.join(image.tags)}")
    if image.metadata:
        lines.append(f"Metadata: {json.dumps(image.metadata, separators=(',', ':'), ensure_ascii=False)}")
    if image.created_at is not None:
        lines.append(f"Created: {_iso_timestamp(image.created_at)}")
    if image.error_code:
        lines.append(f"Error code: {image.error_code}")
    flattened = _flatten(image.errors)
    if flattened:
        lines.append(f"Errors: {flattened}")
    return "\n".join(lines)


def format_image_list(result: ImageList) -> str:
    p = result.pagination
    lines = [f"Found {p.total_count} images (page {p.current_page} of {p.total_pages})", ""]
    if not result.images:
        lines.append("No images found.")
    for image in result.images:
        alt = image.alt_text if image.alt_text is not None else "(no alt text)"
        lines.append(f"- {image.asset_id}: {alt}")
    return "\n".join(lines)


def format_account(account: AccountRecord) -> str:
    if account.usage is not None and account.usage_limit is not None:
        # Not clamped; an over-limit account shows a negative balance.
        remaining = account.usage_limit - account.usage
        credits = f"{remaining} remaining ({account.usage} used of {account.usage_limit})"
    else:
        credits = "(unknown)"

    lines = [
        f"Account: {account.name or '(unnamed)'}",
        f"Credits: {credits}",
        f"Default language: {account.default_lang or '(none)'}",
    ]
    if account.gpt_prompt:
        lines.append(f"Custom prompt: {account.gpt_prompt}")
    if account.max_chars:
        lines.append(f"Max chars: {account.max_chars}")
    if account.webhook_url:
        lines.append(f"Webhook: {account.webhook_url}")
    if account.notification_email:
        lines.append(f"Notification email: {account.notification_email}")
    lines.append(f"Whitelabel: {_flag(account.whitelabel)}")
    lines.append(f"No quotes: {_flag(account.no_quotes)}")
    if account.ending_period:
        lines.append("Ending period: true")
    if account.remove_symbols:
        lines.append("Remove symbols: true")
    return "\n".join(lines)


def format_scrape_result(result: ScrapeResult, url: str) -> str:
    scraped = result.scraped_images
    lines = [
        f"Scraped {url}",
        f"Images found: {len(scraped)}",
        f"Images queued for processing: {result.total_processed}",
        "",
    ]
    if scraped:
        lines.append("Discovered images:")
        for img in scraped:
            status = f"skipped: {img.skip_reason}" if img.skip_reason else "queued"
            dims = ""
            if img.width is not None and img.height is not None:
                dims = f" ({img.width}x{img.height})"
            lines.append(f"  - {img.src or '(no src)'}{dims} [{status}]")

    flattened = _flatten(result.errors)
    if flattened:
        lines.append(f"\nErrors: {flattened}")
    if result.total_processed > 0:
        lines.append(f"\n{ASYNC_NOTE}")
    return "\n".join(lines)


def format_bulk_result(result: BulkCreateResult) -> str:
    text = f"Bulk import processed {result.rows or 0} rows"
    if result.row_errors:
        text += "\n\nErrors:\n" + "\n".join(result.row_errors)
    if result.error:
        text += f"\n\nFile error: {result.error}"
    return text


def format_error(err: BaseException) -> str:
    if isinstance(err, AltTextApiError):
        parts = [f"Error ({err.status}): {err.message}"]
        if err.error_code:
            parts.append(f"Code: {err.error_code}")
        return "\n".join(parts)
    return f"Error: {err}"
