"""CLI entry point for batch section content generation.

Usage:
    python -m src.magazine_ai.content_generator.main --input requests.json
    python -m src.magazine_ai.content_generator.main --input requests.json --concurrency 2 --retry-failed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from src.common.config import Settings
from src.common.logging import quiet_sdk_loggers, setup_logging
from src.magazine_ai.batch import BatchOrchestrator, ProgressStatus
from src.magazine_ai.section_config import SectionRegistry

from .generator import SectionContentGenerator
from .model_client import ModelClient
from .models import GenerationRequest

logger = setup_logging(module_name="content_generator.main")


def load_requests(path: Path) -> list[GenerationRequest]:
    """Read a JSON list of generation requests."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of requests")
    return [GenerationRequest.from_dict(item) for item in data]


def log_progress(progress: dict) -> None:
    done = sum(
        1 for entry in progress.values()
        if entry.status in (ProgressStatus.COMPLETED, ProgressStatus.ERROR)
    )
    logger.info("Progress: %d/%d settled", done, len(progress))


async def run_batch(
    requests: list[GenerationRequest],
    settings: Settings,
    concurrency: int | None,
    retry_failed: bool,
    sections_path: Path | None = None,
) -> dict:
    registry = SectionRegistry.load(sections_path or settings.sections_path)
    client = ModelClient.from_environment(registry, settings)
    generator = SectionContentGenerator(client, registry, settings=settings)
    orchestrator = BatchOrchestrator(generator, on_progress=log_progress, settings=settings)

    results = await orchestrator.run(requests, concurrency_limit=concurrency)
    if retry_failed and orchestrator.failed_request_ids():
        results = await orchestrator.retry_failed()

    logger.info("Summary: %s", orchestrator.summary())
    return {request_id: result.to_dict() for request_id, result in results.items()}


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate magazine section content")
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to a JSON list of generation requests",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Output path for the result map JSON (default: stdout)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Requests per window (default: from settings)",
    )
    parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Retry failed requests once after the first pass",
    )
    parser.add_argument(
        "--sections",
        type=Path,
        help="Path to a sections YAML file (default: bundled sections.yaml)",
    )

    args = parser.parse_args()
    quiet_sdk_loggers()

    if not args.input.exists():
        logger.error("Input file not found: %s", args.input)
        sys.exit(1)

    settings = Settings.load()
    requests = load_requests(args.input)
    logger.info("Loaded %d request(s) from %s", len(requests), args.input)

    output = asyncio.run(
        run_batch(requests, settings, args.concurrency, args.retry_failed, args.sections)
    )
    rendered = json.dumps(output, ensure_ascii=False, indent=2)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(rendered)
        logger.info("Results written to %s", args.output)
    else:
        print(rendered)


if __name__ == "__main__":
    main()
