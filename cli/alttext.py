#!/usr/bin/env python3
import argparse
import sys
from pathlib import Path

# Ensure local src/ is on sys.path when running from repo without installing
try:
    import alttext_mcp  # type: ignore
except ModuleNotFoundError:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if src_dir.exists():
        sys.path.insert(0, str(src_dir))

from alttext_mcp.api.client import AltTextClient
from alttext_mcp.api.errors import AltTextApiError, ConfigError, LocalValidationError
from alttext_mcp.config import Settings, configure_logging, load_env_file
from alttext_mcp.files import IMAGE_EXTENSIONS, encode_base64, resolve_file
from alttext_mcp.formatters import (
    format_account,
    format_error,
    format_image,
    format_image_list,
)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Work with the AltText.ai API from the command line")
    p.add_argument("--verbose", action="store_true", help="Log requests to stderr")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("account", help="Show account info and credit balance")

    gen = sub.add_parser("generate", help="Generate alt text for one image")
    g = gen.add_mutually_exclusive_group(required=True)
    g.add_argument("--image-url", help="HTTP/HTTPS URL of the image")
    g.add_argument("--file-path", help="Local file path to the image")
    gen.add_argument("--lang", default=None)
    gen.add_argument("--asset-id", default=None)

    get = sub.add_parser("get", help="Show one image by asset ID")
    get.add_argument("asset_id")
    get.add_argument("--lang", default=None)

    ls = sub.add_parser("list", help="List images in the library")
    ls.add_argument("--page", type=int, default=None)
    ls.add_argument("--limit", type=int, default=None)
    ls.add_argument("--lang", default=None)
    return p


def run(args: argparse.Namespace, client: AltTextClient) -> str:
    if args.command == "account":
        return format_account(client.get_account().unwrap())
    if args.command == "generate":
        options = {"lang": args.lang, "asset_id": args.asset_id}
        if args.image_url:
            return format_image(client.create_image(args.image_url, **options).unwrap())
        raw = encode_base64(resolve_file(args.file_path, IMAGE_EXTENSIONS))
        return format_image(client.create_image_from_raw(raw, **options).unwrap())
    if args.command == "get":
        return format_image(client.get_image(args.asset_id, lang=args.lang).unwrap())
    return format_image_list(client.list_images(page=args.page, limit=args.limit, lang=args.lang).unwrap())


def main(argv=None) -> int:
    load_env_file()
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Error: {e}. Add it to your environment or a .env file.", file=sys.stderr)
        return 1
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    client = AltTextClient.from_settings(settings)
    try:
        print(run(args, client))
    except (AltTextApiError, LocalValidationError, OSError) as e:
        print(format_error(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
