#!/usr/bin/env python3
"""
Inject a video into a Logic World save as a pixel display circuit.

Usage:
    python main.py "<saves>/bad apple 24x18/data.logicworld" --frames frames

Frames are read from a directory (sorted by file name), thresholded to
black/white and turned into one row board per pixel row. The save is
rewritten in place, and only after the whole circuit was generated.
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

import blotter
from lwvideo import FrameSource, GenerationError, SettingsManager, generate

logger = logging.getLogger("lwvideo")


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inject video frames into a Logic World save")
    parser.add_argument("save", help="Path to the save file (data.logicworld), rewritten in place")
    parser.add_argument("--frames", dest="frames_dir", help="Directory of frame images (default: frames)")
    parser.add_argument("--config", help="JSON file with generator settings")
    parser.add_argument("--threshold", type=int, help="Luma above this value is ON (default: 127)")
    parser.add_argument("--chunk-interval", type=int, help="Frames between chunk delayers (default: 200)")
    parser.add_argument("--output", help="Write to this path instead of overwriting the save")
    parser.add_argument("--dry-run", action="store_true", help="Generate in memory only, write nothing")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        settings = SettingsManager(args.config).load(
            frames_dir=args.frames_dir,
            threshold=args.threshold,
            chunk_interval=args.chunk_interval,
        )
        save = blotter.read_file(args.save)
        frames = FrameSource.from_directory(
            settings.frames_dir,
            threshold=settings.threshold,
            flip_vertical=settings.flip_vertical,
        )
        report = generate(save, frames, settings)
    except (GenerationError, blotter.BlotterFormatError, ValidationError, OSError) as e:
        logger.error(f"Generation failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.dry_run:
        logger.info("Dry run, save not written")
        return 0

    target = args.output or args.save
    try:
        blotter.write_file(target, save)
    except (blotter.BlotterFormatError, OSError) as e:
        logger.error(f"Writing {target} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    logger.info(f"Wrote {report.pixel_delayers + report.connectors} pixel parts to {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
