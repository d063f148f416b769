"""
AltText.ai MCP tools.

`TOOL_DEFINITIONS` is the static tool table; `AltTextTools` holds one handler
per entry. Argument types carry their bounds (pydantic `Field`), so FastMCP
rejects malformed calls before a handler runs. Every handler performs at most
one API call and answers with a single text block, flagged `isError` on
failure.
"""
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent, ToolAnnotations
from pydantic import Field

from alttext_mcp.api.client import AltTextClient
from alttext_mcp.api.errors import LocalValidationError
from alttext_mcp.api.models import ApiResult
from alttext_mcp.files import IMAGE_EXTENSIONS, encode_base64, resolve_file
from alttext_mcp.formatters import (
    format_account,
    format_bulk_result,
    format_error,
    format_image,
    format_image_list,
    format_scrape_result,
)

logger = logging.getLogger(__name__)

# Argument shapes shared across tools
HttpUrl = Annotated[str, Field(max_length=2048, pattern=r"^https?://\S+$")]
Email = Annotated[str, Field(max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]
AssetId = Annotated[str, Field(min_length=1, max_length=256)]
Lang = Annotated[str, Field(min_length=1, max_length=64)]
FilePath = Annotated[str, Field(min_length=1, max_length=4096)]
Keyword = Annotated[str, Field(max_length=128)]
Keywords = Annotated[List[Keyword], Field(max_length=20)]
Tags = Annotated[List[Keyword], Field(max_length=50)]
Metadata = Dict[str, Annotated[str, Field(max_length=256)]]
GptPrompt = Annotated[str, Field(max_length=768)]
MaxChars = Annotated[int, Field(ge=1, le=1000)]
Limit = Annotated[int, Field(ge=1, le=100)]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    title: str
    description: str
    read_only: bool = False
    destructive: bool = False


TOOL_DEFINITIONS = (
    ToolDefinition(
        "get_account",
        "Get Account",
        "Get your AltText.ai account info including credit balance, usage, and settings",
        read_only=True,
    ),
    ToolDefinition(
        "update_account",
        "Update Account",
        "Update your AltText.ai account settings (name, webhook URL, notification email)",
    ),
    ToolDefinition(
        "generate_alt_text",
        "Generate Alt Text",
        "Generate AI-powered alt text for an image URL. Returns the result synchronously "
        "(may take a few seconds). Costs 1 credit per image.",
    ),
    ToolDefinition(
        "generate_alt_text_from_file",
        "Generate Alt Text from File",
        "Generate alt text from a local image file. Reads the file, base64-encodes it, "
        "and sends it to AltText.ai. Costs 1 credit.",
    ),
    ToolDefinition(
        "translate_image",
        "Translate Image",
        "Add alt text in a new language for an existing image. Uses the asset_id to find "
        "the image and generates a translation. Costs 1 credit.",
    ),
    ToolDefinition(
        "list_images",
        "List Images",
        "List images in your AltText.ai library with pagination",
        read_only=True,
    ),
    ToolDefinition(
        "search_images",
        "Search Images",
        "Search images by alt text content",
        read_only=True,
    ),
    ToolDefinition(
        "get_image",
        "Get Image",
        "Get details for a specific image by its asset ID",
        read_only=True,
    ),
    ToolDefinition(
        "update_image",
        "Update Image",
        "Update alt text and/or metadata for an existing image",
    ),
    ToolDefinition(
        "delete_image",
        "Delete Image",
        "Delete an image from your AltText.ai library",
        destructive=True,
    ),
    ToolDefinition(
        "bulk_create",
        "Bulk Create",
        "Bulk generate alt text for multiple images from a CSV file. CSV should have columns: "
        "url (required), asset_id, lang, keywords, tags, metadata (optional).",
    ),
    ToolDefinition(
        "scrape_page",
        "Scrape Page",
        "Find images on a web page and queue alt-text generation jobs. "
        "Images are processed asynchronously.",
    ),
)


def text_result(text: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=False)


def error_result(err: BaseException) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=format_error(err))], isError=True)


def _respond(result: ApiResult, render: Callable[[Any], str]) -> CallToolResult:
    if not result.ok:
        return error_result(result.error)
    return text_result(render(result.value))


class AltTextTools:
    def __init__(self, client: AltTextClient) -> None:
        self.client = client

    # -- Account --

    def get_account(self) -> CallToolResult:
        return _respond(self.client.get_account(), format_account)

    def update_account(
        self,
        name: Annotated[Optional[Annotated[str, Field(max_length=256)]], Field(description="Account name")] = None,
        webhook_url: Annotated[Optional[HttpUrl], Field(description="Webhook URL for processing notifications")] = None,
        notification_email: Annotated[Optional[Email], Field(description="Email address for notifications")] = None,
    ) -> CallToolResult:
        res = self.client.update_account(
            name=name, webhook_url=webhook_url, notification_email=notification_email
        )
        return _respond(res, lambda account: f"Updated account settings:\n\n{format_account(account)}")

    # -- Generation --

    def generate_alt_text(
        self,
        url: Annotated[HttpUrl, Field(description="Public URL of the image")],
        asset_id: Annotated[Optional[AssetId], Field(description="Custom asset ID (default: auto-generated hash)")] = None,
        lang: Annotated[Optional[Lang], Field(description="Comma-separated language codes (e.g. 'en', 'en,fr,es')")] = None,
        keywords: Annotated[Optional[Keywords], Field(description="Keywords to incorporate")] = None,
        negative_keywords: Annotated[Optional[Keywords], Field(description="Keywords to avoid")] = None,
        gpt_prompt: Annotated[Optional[GptPrompt], Field(description="Custom prompt template. Use {{AltText}} as a placeholder for the generated alt text.")] = None,
        max_chars: Annotated[Optional[MaxChars], Field(description="Maximum character length for the alt text")] = None,
        overwrite: Annotated[Optional[bool], Field(description="Overwrite existing alt text if image was previously processed")] = None,
        tags: Annotated[Optional[Tags], Field(description="Tags for organization")] = None,
        metadata: Annotated[Optional[Metadata], Field(description="Custom metadata (string key-value pairs)")] = None,
    ) -> CallToolResult:
        res = self.client.create_image(
            url,
            asset_id=asset_id,
            lang=lang,
            keywords=keywords,
            negative_keywords=negative_keywords,
            gpt_prompt=gpt_prompt,
            max_chars=max_chars,
            overwrite=overwrite,
            tags=tags,
            metadata=metadata,
        )
        return _respond(res, lambda image: f"Generated alt text for {url}:\n\n{format_image(image)}")

    def generate_alt_text_from_file(
        self,
        file_path: Annotated[FilePath, Field(description="Absolute path to a local image file")],
        asset_id: Annotated[Optional[AssetId], Field(description="Custom asset ID (default: auto-generated hash)")] = None,
        lang: Annotated[Optional[Lang], Field(description="Comma-separated language codes (e.g. 'en', 'en,fr,es')")] = None,
        keywords: Annotated[Optional[Keywords], Field(description="Keywords to incorporate")] = None,
        negative_keywords: Annotated[Optional[Keywords], Field(description="Keywords to avoid")] = None,
        gpt_prompt: Annotated[Optional[GptPrompt], Field(description="Custom prompt template. Use {{AltText}} as a placeholder for the generated alt text.")] = None,
        max_chars: Annotated[Optional[MaxChars], Field(description="Maximum character length for the alt text")] = None,
        overwrite: Annotated[Optional[bool], Field(description="Overwrite existing alt text if image was previously processed")] = None,
        tags: Annotated[Optional[Tags], Field(description="Tags for organization")] = None,
        metadata: Annotated[Optional[Metadata], Field(description="Custom metadata (string key-value pairs)")] = None,
    ) -> CallToolResult:
        try:
            path = resolve_file(file_path, IMAGE_EXTENSIONS)
            raw = encode_base64(path)
        except (LocalValidationError, OSError) as e:
            logger.info(f"Rejected image file {file_path}: {e}")
            return error_result(e)

        res = self.client.create_image_from_raw(
            raw,
            asset_id=asset_id,
            lang=lang,
            keywords=keywords,
            negative_keywords=negative_keywords,
            gpt_prompt=gpt_prompt,
            max_chars=max_chars,
            overwrite=overwrite,
            tags=tags,
            metadata=metadata,
        )
        return _respond(res, lambda image: f"Generated alt text for {path.name}:\n\n{format_image(image)}")

    def translate_image(
        self,
        asset_id: Annotated[AssetId, Field(description="The asset ID of the existing image to translate")],
        lang: Annotated[Lang, Field(description="Target language code(s), comma-separated (e.g. 'de', 'fr,es')")],
    ) -> CallToolResult:
        res = self.client.translate_image(asset_id, lang)
        return _respond(res, lambda image: f"Translated image {asset_id} to {lang}:\n\n{format_image(image)}")

    # -- Library --

    def list_images(
        self,
        page: Annotated[Optional[Annotated[int, Field(ge=1)]], Field(description="Page number (default: 1)")] = None,
        limit: Annotated[Optional[Limit], Field(description="Items per page (default: 20, max: 100)")] = None,
        lang: Annotated[Optional[Lang], Field(description="Filter alt texts by language code")] = None,
        url: Annotated[Optional[HttpUrl], Field(description="Only list images with this source URL")] = None,
        sort: Annotated[Optional[Literal["created_at", "updated_at"]], Field(description="Sort field")] = None,
        direction: Annotated[Optional[Literal["ASC", "DESC"]], Field(description="Sort direction")] = None,
    ) -> CallToolResult:
        res = self.client.list_images(
            page=page, limit=limit, lang=lang, url=url, sort=sort, direction=direction
        )
        return _respond(res, format_image_list)

    def search_images(
        self,
        query: Annotated[Annotated[str, Field(min_length=1, max_length=256)], Field(description="Search query to match against alt text")],
        limit: Annotated[Optional[Limit], Field(description="Max results to return (default: 20)")] = None,
        lang: Annotated[Optional[Lang], Field(description="Filter by language code")] = None,
    ) -> CallToolResult:
        res = self.client.search_images(query, limit=limit, lang=lang)
        return _respond(res, lambda result: f'Search results for "{query}":\n\n{format_image_list(result)}')

    def get_image(
        self,
        asset_id: Annotated[AssetId, Field(description="The asset ID of the image")],
        lang: Annotated[Optional[Lang], Field(description="Filter alt texts by language code")] = None,
    ) -> CallToolResult:
        return _respond(self.client.get_image(asset_id, lang=lang), format_image)

    def update_image(
        self,
        asset_id: Annotated[AssetId, Field(description="The asset ID of the image to update")],
        alt_text: Annotated[Optional[Annotated[str, Field(max_length=1000)]], Field(description="New alt text value")] = None,
        tags: Annotated[Optional[Tags], Field(description="Replace tags")] = None,
        metadata: Annotated[Optional[Metadata], Field(description="Replace metadata (string key-value pairs)")] = None,
        lang: Annotated[Optional[Lang], Field(description="Language code for the alt text (default: 'en')")] = None,
        overwrite: Annotated[Optional[bool], Field(description="If false, skip language entries that already exist")] = None,
    ) -> CallToolResult:
        res = self.client.update_image(
            asset_id, alt_text=alt_text, tags=tags, metadata=metadata, lang=lang, overwrite=overwrite
        )
        return _respond(res, lambda image: f"Updated image {asset_id}:\n\n{format_image(image)}")

    def delete_image(
        self,
        asset_id: Annotated[AssetId, Field(description="The asset ID of the image to delete")],
    ) -> CallToolResult:
        return _respond(self.client.delete_image(asset_id), lambda _: f"Deleted image {asset_id}")

    # -- Bulk / scrape --

    def bulk_create(
        self,
        csv_file: Annotated[FilePath, Field(description="Path to CSV file with image URLs and optional metadata")],
        email: Annotated[Optional[Email], Field(description="Email for completion notification")] = None,
    ) -> CallToolResult:
        try:
            path = resolve_file(csv_file)
            data = path.read_bytes()
        except (LocalValidationError, OSError) as e:
            logger.info(f"Rejected CSV file {csv_file}: {e}")
            return error_result(e)

        return _respond(self.client.bulk_create(data, filename=path.name, email=email), format_bulk_result)

    def scrape_page(
        self,
        url: Annotated[HttpUrl, Field(description="URL of the web page to scrape")],
        html: Annotated[Optional[Annotated[str, Field(max_length=500_000)]], Field(description="Optional HTML override (if omitted, server fetches the page)")] = None,
        include_existing: Annotated[Optional[bool], Field(description="Include images that already have alt text")] = None,
        lang: Annotated[Optional[Lang], Field(description="Language codes for generation")] = None,
        keywords: Annotated[Optional[Keywords], Field(description="Keywords to incorporate")] = None,
        negative_keywords: Annotated[Optional[Keywords], Field(description="Keywords to avoid")] = None,
        gpt_prompt: Annotated[Optional[GptPrompt], Field(description="Custom prompt override")] = None,
        max_chars: Annotated[Optional[MaxChars], Field(description="Maximum character length")] = None,
        overwrite: Annotated[Optional[bool], Field(description="Overwrite existing alt text for images already processed")] = None,
    ) -> CallToolResult:
        res = self.client.scrape_page(
            url,
            html=html,
            include_existing=include_existing,
            lang=lang,
            keywords=keywords,
            negative_keywords=negative_keywords,
            gpt_prompt=gpt_prompt,
            max_chars=max_chars,
            overwrite=overwrite,
        )
        return _respond(res, lambda result: format_scrape_result(result, url))


def register_tools(server: FastMCP, tools: AltTextTools) -> None:
    for d in TOOL_DEFINITIONS:
        server.add_tool(
            getattr(tools, d.name),
            name=d.name,
            title=d.title,
            description=d.description,
            annotations=ToolAnnotations(
                title=d.title,
                readOnlyHint=d.read_only,
                destructiveHint=d.destructive,
                idempotentHint=d.read_only,
                openWorldHint=True,
            ),
            structured_output=False,
        )
