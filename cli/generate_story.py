#!/usr/bin/env python3
"""
CLI for generating a personalized storybook.

Usage:
    python cli/generate_story.py --name Alice --age 5 --traits Brave Kind --favorites Animals
    python cli/generate_story.py --name Leo --type bedtime-story --fast
    python cli/generate_story.py --name Mia --demo          # offline, no API keys needed
"""

import argparse
import asyncio
import base64
import logging
import re
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storybook.api.logging import configure_logging  # noqa: E402
from storybook.config import PipelineSettings, is_demo_mode  # noqa: E402
from storybook.core.programs.story_pipeline import build_pipeline  # noqa: E402
from storybook.core.progress import CompleteEvent, ErrorEvent, ProgressUpdate  # noqa: E402
from storybook.core.types import QuizInput, StoryType  # noqa: E402


def format_progress(event: ProgressUpdate) -> str:
    """One progress line, e.g. "[5/5] Generating illustrations... (3/10)"."""
    line = f"[{event.step}/{event.total_steps}] {event.message}"
    if event.progress:
        line += f" ({event.progress.current}/{event.progress.total})"
    return line


def write_story(output_dir: Path, data) -> None:
    """Save story text, design document and page images."""
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "story.txt").write_text(data.story_text)
    (output_dir / "design_document.txt").write_text(data.design_document)

    for i, page in enumerate(data.pages, start=1):
        (output_dir / f"page_{i:02d}.txt").write_text(page.text)
        if page.image_base64:
            (output_dir / f"page_{i:02d}.png").write_bytes(base64.b64decode(page.image_base64))


async def run(pipeline, quiz: QuizInput, output_dir: Path) -> int:
    """Stream one run, printing progress. Returns the process exit code."""
    async for event in pipeline.stream(quiz):
        if isinstance(event, ProgressUpdate):
            print(format_progress(event))
        elif isinstance(event, ErrorEvent):
            print(f"Error: {event.error}", file=sys.stderr)
            return 1
        elif isinstance(event, CompleteEvent):
            write_story(output_dir, event.data)
            print(f"Story saved to: {output_dir}")
            return 0
    return 1


def main():
    parser = argparse.ArgumentParser(
        description="Generate a personalized illustrated storybook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python cli/generate_story.py --name Alice --age "5 years" --traits Brave Kind
    python cli/generate_story.py --name Leo --type magical-journey --favorites Space Magic
    python cli/generate_story.py --name Mia --demo --fast
        """,
    )

    parser.add_argument("--name", required=True, help="Child's name")
    parser.add_argument("--age", default="5", help='Child\'s age, e.g. "5" or "5 years" (default: 5)')
    parser.add_argument(
        "--traits",
        nargs="*",
        default=[],
        help="Up to 3 personality traits (e.g. Brave Kind Curious)",
    )
    parser.add_argument(
        "--favorites",
        nargs="*",
        default=[],
        help="Up to 4 favorite things, used as story themes",
    )
    parser.add_argument(
        "--type",
        dest="story_type",
        choices=[t.value for t in StoryType],
        default=StoryType.EVERYDAY_ADVENTURE.value,
        help="Story type (default: everyday-adventure)",
    )
    parser.add_argument("--description", default=None, help="Optional story idea")

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output directory (under output/). Auto-generated if not specified.",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Fast profile: 5 pages, 2 supporting characters",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use offline demo generators (no API keys needed)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum illustrations generated at once",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show pipeline logs",
    )

    args = parser.parse_args()

    configure_logging(json_format=False, level=logging.DEBUG if args.verbose else logging.WARNING)

    settings = PipelineSettings.fast() if args.fast else PipelineSettings.from_env()
    if args.concurrency:
        settings = replace(settings, image_concurrency=args.concurrency)

    demo = args.demo or is_demo_mode()
    pipeline = build_pipeline(settings=settings, demo=demo)

    quiz = QuizInput(
        child_name=args.name,
        child_age=args.age,
        story_type=StoryType(args.story_type),
        child_traits=tuple(args.traits[:3]),
        favorite_things=tuple(args.favorites[:4]),
        story_description=args.description,
    )

    output_root = Path(__file__).parent.parent / "output"
    if args.output:
        output_dir = output_root / args.output
    else:
        slug = re.sub(r"[^a-z0-9]+", "_", args.name.lower()).strip("_") or "story"
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = output_root / f"{slug}_{timestamp}"

    if args.verbose:
        mode = "demo" if demo else "live"
        print(f"Generating {settings.profile_name} story for {args.name} ({mode} generators)")

    sys.exit(asyncio.run(run(pipeline, quiz, output_dir)))


if __name__ == "__main__":
    main()
