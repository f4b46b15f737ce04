"""Command‑line interface for Music OS.

Subcommands:

* ``tags`` – list, show, edit and delete tags.
* ``install`` – download a song into a library folder.
* ``play`` – search the library, optionally add the matches to a tag,
  and start the media player.

Run ``python -m music_os --help`` for usage.  Every error is reported
once on stderr and makes :func:`main` return ``1``.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from loguru import logger

from . import editor, installer, player, search
from .config_service import ConfigService
from .exceptions import InvalidArgumentError, MusicOSError, TagNotFoundError
from .paths import bare_song_name, resolve_library_root, tag_store_path
from .tag_store import TagStore, change_songs_in_tag

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def format_time(timestamp: int) -> str:
    return time.strftime(TIME_FORMAT, time.localtime(timestamp))


def _library_root(args: argparse.Namespace, config_service: ConfigService) -> Path:
    return resolve_library_root(args.music_path or config_service.get("music_path"))


def _temp_prefix(tag_name: str) -> str:
    # tag names may contain path separators; mkstemp prefixes may not
    safe = tag_name.replace(os.sep, "_")
    if os.altsep:
        safe = safe.replace(os.altsep, "_")
    return f"{safe}-"


def run_tags(args: argparse.Namespace, config_service: ConfigService) -> int:
    tag_name: str = args.tag or ""
    if args.delete:
        if args.editor:
            raise InvalidArgumentError("can't have --delete and --editor together")
        if not tag_name:
            raise InvalidArgumentError("can't use --delete without a tag")

    library_root = _library_root(args, config_service)
    editor_cmd = config_service.get("editor")

    if not tag_name:
        if args.editor:
            editor.edit_file(tag_store_path(library_root), editor_cmd)
            # fail loudly if the hand-edited file no longer parses
            TagStore.load(library_root)
            return 0
        store = TagStore.load(library_root)
        if args.json:
            print(json.dumps(store.names(), indent=2, ensure_ascii=False))
        else:
            for name in store.names():
                print(name)
        return 0

    store = TagStore.load(library_root)

    if args.editor:
        songs = store.tags[tag_name].songs if tag_name in store else []
        content = editor.create_and_edit_temp(
            prefix=_temp_prefix(tag_name),
            suffix=".txt",
            initial_content="\n".join(songs),
            editor=editor_cmd,
        )
        entries = [bare_song_name(line, library_root) for line in content.splitlines()]
        store.change_songs(tag_name, entries, append=False)
        store.persist()
        return 0

    if args.delete:
        store.delete(tag_name)
        store.persist()
        print(f'Deleted tag "{tag_name}"')
        return 0

    record = store.get(tag_name)
    if args.json:
        print(json.dumps({tag_name: record.to_dict()}, indent=2, ensure_ascii=False))
        return 0
    print(
        f"Amount: {len(record.songs)}, "
        f"Creation: {format_time(record.creation_time)}, "
        f"Modified: {format_time(record.modified_time)}"
    )
    for song in record.songs:
        print(song)
    return 0


def run_install(args: argparse.Namespace, config_service: ConfigService) -> int:
    library_root = _library_root(args, config_service)
    installer.install(
        library_root,
        args.id,
        args.folder,
        fmt=args.format or config_service.get("format", "m4a"),
        name=args.name,
        extra_args=args.ytdl_args,
        downloader=config_service.get("downloader", "youtube-dl"),
    )
    return 0


def run_play(args: argparse.Namespace, config_service: ConfigService) -> int:
    library_root = _library_root(args, config_service)
    player_cmd = config_service.get("player", "vlc")

    if not args.terms and not args.limit and not args.tag:
        print("Playing all songs")
        if not args.dry_run:
            player.play(player.build_play_command(library_root, [], player_cmd))
        return 0

    songs = search.find_songs(library_root, args.terms)
    if not songs:
        print("Didn't match anything", file=sys.stderr)
        return 1
    if args.new:
        songs = search.sort_by_newest(library_root, songs)
    if args.limit and len(songs) > args.limit:
        songs = songs[: args.limit]

    print(f"Playing: [{len(songs)}]")
    for song in songs:
        print(f"- {song}")

    if args.tag:
        record = change_songs_in_tag(library_root, args.tag, songs, append=True)
        print(f'Tag "{args.tag}" now has {len(record.songs)} song(s)')

    if not args.dry_run:
        player.play(player.build_play_command(library_root, songs, player_cmd, keep_order=args.new))
    return 0


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be a non-negative integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="music-os",
        description="Music OS – organise, tag and play a local music library",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    music_path = argparse.ArgumentParser(add_help=False)
    music_path.add_argument("--music-path", "-m", default="", help="The music path to use (default: ~/Music)")

    tags = subparsers.add_parser(
        "tags",
        parents=[music_path],
        help="Manage tags",
        description="Manage tags. Lists all the tags by default. If a tag is provided, "
        "this will list all the songs in that tag.",
    )
    tags.add_argument("tag", nargs="?", help="Tag to show, edit or delete")
    tags.add_argument("--editor", "-e", action="store_true", help="Edit tags.json or a specific tag with $EDITOR")
    tags.add_argument("--delete", "-d", action="store_true", help="Delete a tag")
    tags.add_argument("--json", action="store_true", help="Print JSON instead of text")
    tags.set_defaults(handler=run_tags)

    install = subparsers.add_parser(
        "install",
        aliases=["i", "download"],
        parents=[music_path],
        help="Install music from a YouTube id or url",
    )
    install.add_argument("id", help="YouTube video id or https:// url")
    install.add_argument("folder", help="Library folder to install into")
    install.add_argument("--format", "-f", choices=installer.SUPPORTED_FORMATS, default=None,
                         help="Format to install to (default from config, m4a)")
    install.add_argument("--ytdl-args", "-y", default="", help="Additional arguments to send to the downloader")
    install.add_argument("--name", "-n", default=None, help="The file name to install to (no ext)")
    install.set_defaults(handler=run_install)

    play = subparsers.add_parser("play", parents=[music_path], help="Play songs matching search terms")
    play.add_argument("terms", nargs="*", help="Search terms; ',' = or, '#' = and, leading '!' excludes")
    play.add_argument("--limit", "-l", type=_non_negative_int, default=0, help="Play at most this many songs")
    play.add_argument("--new", "-n", action="store_true", help="Newest songs first, in order")
    play.add_argument("--dry-run", "-d", action="store_true", help="Print the selection without playing")
    play.add_argument("--tag", "-t", default=None, help="Append the matched songs to this tag")
    play.set_defaults(handler=run_play)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    config_service = ConfigService()
    try:
        return args.handler(args, config_service)
    except TagNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except MusicOSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
