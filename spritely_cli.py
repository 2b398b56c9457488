from pathlib import Path
import argparse
import asyncio
import logging
import re
import sys

from spritely.config import SpritelyConfig
from spritely.errors import WatchedRootDeleted
from spritely.fixer import fix_sprites
from spritely.models import FixerOptions, FixMethod


COMMAND_METHODS = {
    "crop": [FixMethod.CROP],
    "bleed": [FixMethod.BLEED],
    "alphaline": [FixMethod.BLEED],
    "fix": [FixMethod.CROP, FixMethod.BLEED],
    "apply-gradient-maps": [FixMethod.APPLY_GRADIENT_MAPS],
}


def add_general_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--folder",
        type=Path,
        default=Path.cwd(),
        help="Folder of subimages. Only immediate PNG children are subimages "
        "(default: current directory)",
    )
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Treat --folder and every folder inside it as a sprite",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="After the first pass, re-run whenever PNGs are added or changed",
    )
    parser.add_argument(
        "-m",
        "--move",
        type=Path,
        help="Move sprites here after correction, keeping relative paths",
    )
    parser.add_argument(
        "-a",
        "--allow-subimage-size-mismatch",
        action="store_true",
        help="Allow subimages of one sprite to differ in size",
    )
    parser.add_argument(
        "--purge-top-level-folders",
        action="store_true",
        help="Delete top-level folders under --move before writing new results",
    )
    parser.add_argument(
        "-s",
        "--root-images-are-sprites",
        action="store_true",
        help="Move PNGs directly in --folder into same-named sprite folders first",
    )
    parser.add_argument(
        "-p",
        "--if-match",
        help="Only process sprites whose top-level folder matches this regex",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spritely",
        description="Image correction and cleanup for 2D game sprites.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    crop = commands.add_parser("crop", help="Autocrop subimages, keeping relative positions")
    bleed = commands.add_parser(
        "bleed",
        aliases=["alphaline"],
        help="Add a low-alpha outline around foreground objects",
    )
    fix = commands.add_parser("fix", help="Crop, then bleed")
    gradmaps = commands.add_parser(
        "apply-gradient-maps", help="Create recolored sprite variants from gradient maps"
    )
    for sub in (crop, bleed, fix, gradmaps):
        add_general_options(sub)
    for sub in (crop, fix):
        sub.add_argument(
            "--padding",
            type=int,
            help="Transparent pixels to keep around the foreground",
        )
    gradmaps.add_argument(
        "-d",
        "--delete-source",
        action="store_true",
        help="Delete the source subimages after writing the skins",
    )
    gradmaps.add_argument(
        "-g",
        "--gradient-maps-file",
        type=Path,
        help="Gradient map file used for every sprite instead of each sprite's own",
    )

    args = parser.parse_args(argv)
    sub = commands.choices[args.command]

    if args.purge_top_level_folders and args.move is None:
        sub.error("--purge-top-level-folders requires --move")
    if getattr(args, "padding", None) is not None and args.padding < 0:
        sub.error("--padding must be 0 or positive")
    if args.if_match is not None:
        try:
            re.compile(args.if_match)
        except re.error as exc:
            sub.error(f"--if-match is not a valid pattern: {exc}")
    gradient_maps_file = getattr(args, "gradient_maps_file", None)
    if gradient_maps_file is not None and not gradient_maps_file.is_file():
        sub.error(f"--gradient-maps-file {gradient_maps_file} does not exist")

    return args


def build_options(args: argparse.Namespace, config: SpritelyConfig) -> FixerOptions:
    return FixerOptions(
        folder=args.folder,
        recursive=args.recursive,
        watch=args.watch,
        move=args.move,
        allow_size_mismatch=args.allow_subimage_size_mismatch,
        root_images_are_sprites=args.root_images_are_sprites,
        purge_top_level_folders=args.purge_top_level_folders,
        if_match=args.if_match,
        delete_source=getattr(args, "delete_source", False),
        gradient_maps_file=getattr(args, "gradient_maps_file", None),
        padding=getattr(args, "padding", None),
        debug=args.debug or config.debug,
        methods=list(COMMAND_METHODS[args.command]),
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        config = SpritelyConfig.from_env()
    except RuntimeError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
        logging.error("%s", exc)
        sys.exit(1)

    debug = args.debug or config.debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    options = build_options(args, config)
    try:
        asyncio.run(fix_sprites(options, config))
    except KeyboardInterrupt:
        logging.info("Stopped")
    except WatchedRootDeleted as exc:
        logging.error("%s", exc)
        sys.exit(1)
    except Exception as exc:
        logging.exception("Spritely failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
