"""Command-line entry point.

Examples:
  titlelang detect titles.txt
  titlelang detect titles.txt --backend fasttext --json
  titlelang serve --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from titlelang.config import settings
from titlelang.models import DetectionResult, dump
from titlelang.pipeline.detectors import available_backends
from titlelang.pipeline.orchestrator import DetectionService, get_language_statistics


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="titlelang",
        description="Title Language Service - detect the language of video titles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n", 2)[2],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    detect = sub.add_parser("detect", help="Detect languages for titles in a file (one per line)")
    detect.add_argument("file", type=Path, help="Text file, one title per line ('-' for stdin)")
    detect.add_argument(
        "-b", "--backend", choices=available_backends(), default=None,
        help=f"Primary detector (default: {settings.detector_backend})",
    )
    detect.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    serve = sub.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _read_titles(path: Path) -> list[str]:
    if str(path) == "-":
        lines = sys.stdin.read().splitlines()
    else:
        lines = path.read_text(encoding="utf-8").splitlines()
    return [line for line in lines if line.strip()]


def _print_table(titles: list[str], results: list[DetectionResult]) -> None:
    for title, result in zip(titles, results):
        print(
            f"  [{result.language}] {result.confidence.value:<6} "
            f"{result.detection_score:.2f}  {title}"
        )


async def _detect_all(
    service: DetectionService, titles: list[str]
) -> tuple[list[DetectionResult], bool]:
    """Run the batch and release the detector's resources in the same loop."""
    try:
        results = await service.detect_languages_batch(titles)
        return results, service.detector.loaded
    finally:
        await service.close()


def run_detect(args: argparse.Namespace) -> int:
    try:
        titles = _read_titles(args.file)
    except OSError as exc:
        print(f"[-] Could not read {args.file}: {exc}", file=sys.stderr)
        return 1

    if not titles:
        print("[-] No titles found. Exiting.", file=sys.stderr)
        return 1

    service = DetectionService.from_settings(settings, backend=args.backend)
    results, primary_loaded = asyncio.run(_detect_all(service, titles))
    stats = get_language_statistics(results)

    if args.json:
        payload = {
            "results": [dump(r) for r in results],
            "statistics": dump(stats),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print("\n" + "=" * 50)
    print("   TITLE LANGUAGE DETECTION")
    print("=" * 50)
    _print_table(titles, results)

    print("\n" + "=" * 50)
    print("SUMMARY")
    print("=" * 50)
    print(f"  - Backend: {service.backend} (loaded: {primary_loaded})")
    print(f"  - Titles: {stats.total}")
    for language, count in sorted(stats.by_language.items(), key=lambda kv: -kv[1]):
        print(f"  - {language}: {count}")
    tiers = ", ".join(f"{tier.value}={count}" for tier, count in stats.by_confidence.items())
    print(f"  - Confidence: {tiers}")
    print("=" * 50 + "\n")
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("titlelang.main:app", host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    if args.command == "detect":
        return run_detect(args)
    return run_serve(args)


if __name__ == "__main__":
    sys.exit(main())
