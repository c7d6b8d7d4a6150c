"""
Command-line entry point for Badge Overlay.

    badge-overlay --image poster.jpg --label "NEW" --label "50% OFF"

Prints one JSON outcome per label. Exit code is 0 when every label
succeeded, 2 when some failed, 1 when all failed or the input was invalid.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_badge_config
from .constants import configure_logging, logger
from .errors import BadgeError
from .fonts import validate_fonts_at_startup
from .generator import BadgeGenerator, outcomes_to_dicts
from .models import summarize_outcomes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Composite text badges onto an image')
    parser.add_argument('--image', '-i', type=str, required=True,
                        help='Path to the source image')
    parser.add_argument('--label', '-l', action='append', required=True, dest='labels',
                        help='Badge text; repeat for several badges')
    parser.add_argument('--config', '-c', type=str, default=None,
                        help='Path to badge YAML config')
    parser.add_argument('--output-dir', '-o', type=str, default=None,
                        help='Directory for generated images')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Whole-batch timeout in seconds')
    parser.add_argument('--workers', type=int, default=None,
                        help='Maximum labels composited in parallel')
    parser.add_argument('--layout', type=str, default=None,
                        help='Layout preset (bottom_center, top_center, center, top_left, ...)')
    parser.add_argument('--bg-color', type=str, default=None,
                        help='Badge background color')
    parser.add_argument('--text-color', type=str, default=None,
                        help='Badge text color')
    parser.add_argument('--corner-radius', type=int, default=None,
                        help='Badge corner radius in pixels')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    style = {
        'background_color': args.bg_color,
        'text_color': args.text_color,
        'corner_radius': args.corner_radius,
    }
    style = {k: v for k, v in style.items() if v is not None}
    return {
        'output_dir': args.output_dir,
        'timeout': args.timeout,
        'max_workers': args.workers,
        'layout': args.layout,
        'style': style or None,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    # stdout carries the JSON outcomes
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, stream=sys.stderr)

    image_path = Path(args.image)
    if not image_path.exists():
        logger.error(f"Image path does not exist: {image_path}")
        return 1

    try:
        config = load_badge_config(args.config, _overrides_from_args(args))
        validate_fonts_at_startup()
        generator = BadgeGenerator.from_config(config)
    except (BadgeError, OSError, ValueError) as e:
        logger.error(f"Failed to initialize: {e}")
        return 1

    try:
        image_bytes = image_path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read image {image_path}: {e}")
        return 1

    outcomes = generator.generate_batch(image_bytes, args.labels)
    json.dump(outcomes_to_dicts(outcomes), sys.stdout, indent=2)
    sys.stdout.write('\n')

    summary = summarize_outcomes(outcomes)
    if summary['failed'] == 0:
        return 0
    if summary['succeeded'] == 0:
        return 1
    return 2


if __name__ == '__main__':
    sys.exit(main())
