"""Command-line entry point for the asset localizer."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Iterable, List, Sequence

from .config import GenerationConfig
from .detector import detect_assets
from .generation import HttpAssetGenerator
from .models import BusinessContext, PageKeywords, flatten_keywords
from .orchestrator import run_pipeline

logger = logging.getLogger("asset_localizer.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("localize", *argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _add_detect_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=Path, help="HTML document to scan")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print detected assets as JSON instead of one line per asset",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_localize_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=Path, help="HTML document whose assets should be replaced")
    parser.add_argument("--business-name", required=True, help="Business the site is built for")
    parser.add_argument("--industry", default=None, help="Industry of the business")
    parser.add_argument("--location", default=None, help="Location of the business")
    parser.add_argument(
        "--service",
        action="append",
        default=[],
        dest="services",
        help="Service offered by the business (repeatable)",
    )
    parser.add_argument(
        "--keyword",
        action="append",
        default=[],
        dest="keywords",
        help="SEO keyword to mention in prompts (repeatable)",
    )
    parser.add_argument(
        "--keywords-file",
        type=Path,
        default=None,
        help="JSON file with a list of keywords or of {name, type, keywords} page entries",
    )
    parser.add_argument(
        "--endpoint",
        default=None,
        help="Generation service URL (defaults to ASSET_SERVICE_URL)",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="Bearer token for the generation service (defaults to ASSET_SERVICE_API_KEY)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the rewritten document (defaults to <name>.localized.html)",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Where to write the manifest JSON (defaults to <name>.manifest.json)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replace template images, backgrounds and video posters with generated assets.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect_parser = subparsers.add_parser(
        "detect", help="List the assets that would be replaced"
    )
    _add_detect_arguments(detect_parser)

    localize_parser = subparsers.add_parser(
        "localize", help="Generate replacement assets and rewrite the document"
    )
    _add_localize_arguments(localize_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def load_keywords_file(path: Path) -> List[str]:
    """Read keywords from a JSON list of strings or of per-page keyword entries."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list")
    pages: List[PageKeywords] = []
    loose: List[str] = []
    for item in data:
        if isinstance(item, str):
            loose.append(item)
        elif isinstance(item, dict):
            pages.append(
                PageKeywords(
                    name=str(item.get("name", "")),
                    keywords=tuple(str(kw) for kw in item.get("keywords") or ()),
                    page_type=item.get("type"),
                )
            )
    return flatten_keywords([PageKeywords(name="", keywords=tuple(loose)), *pages])


def _run_detect(args: argparse.Namespace) -> None:
    _configure_logging(args.verbose)
    document = args.path.read_text(encoding="utf-8")
    assets = detect_assets(document)
    if args.json:
        sys.stdout.write(json.dumps([asdict(asset) for asset in assets], indent=2) + "\n")
        return
    for asset in assets:
        sys.stdout.write(
            f"{asset.id}\t{asset.kind.value}\t{asset.section}\t{asset.original_reference}\n"
        )
    logger.info("Detected %d asset(s) in %s", len(assets), args.path)


def _run_localize(args: argparse.Namespace) -> None:
    _configure_logging(args.verbose)

    config = GenerationConfig.from_env()
    if args.endpoint:
        config.endpoint_url = args.endpoint
    if args.api_key:
        config.api_key = args.api_key
    if args.timeout:
        config.timeout = args.timeout
    if not config.endpoint_url:
        raise SystemExit("A generation endpoint is required (--endpoint or ASSET_SERVICE_URL)")

    keywords = list(args.keywords)
    if args.keywords_file:
        keywords.extend(load_keywords_file(args.keywords_file))

    business = BusinessContext(
        business_name=args.business_name,
        industry=args.industry,
        location=args.location,
        services=tuple(args.services),
    )
    document = args.path.read_text(encoding="utf-8")
    output_path = args.output or args.path.with_suffix(".localized.html")
    manifest_path = args.manifest or args.path.with_suffix(".manifest.json")

    generator = HttpAssetGenerator(config)
    overall_start = time.perf_counter()
    try:
        result = asyncio.run(
            run_pipeline(document, generator, business, keywords, config)
        )
    finally:
        generator.close()
    total_elapsed = time.perf_counter() - overall_start

    output_path.write_text(result.final_document, encoding="utf-8")
    manifest_path.write_text(
        json.dumps([entry.to_dict() for entry in result.manifest], indent=2) + "\n",
        encoding="utf-8",
    )
    logger.info("Saved document to %s", output_path)
    logger.info(
        "Finished in %.2fs (%d asset(s) replaced, manifest at %s)",
        total_elapsed,
        len(result.manifest),
        manifest_path,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "detect":
        _run_detect(args)
    else:
        _run_localize(args)


if __name__ == "__main__":
    main()
