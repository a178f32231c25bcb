#!/usr/bin/env python3
"""Command-line interface for code-saver."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import destinations_path, history_path, load_config, log_dir
from .core import BlockSuggestion, CodeSaver, scan_text
from .context import ContextLimits
from .destinations import DestinationRegistry
from .exceptions import CodeSaverError, NoDestinationsError
from .history import DirectoryHistory
from .models import Confidence
from .suggest import join_path, suggest_path
from .transport import HostClient, serve
from .watch import TranscriptWatcher

_FORMAT_CHOICES = {
    "auto": None,
    "html": "html",
    "markdown": "markdown",
}


def _limits(config) -> ContextLimits:
    return ContextLimits(max_chars=int(config["context_limit"]))


def _read_transcript(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _block_line(block: BlockSuggestion, path: str = "") -> str:
    result = block.result
    return (
        f"[{block.index}] {result.suggested_name:<30} {result.provenance.value:<22} "
        f"{result.confidence.value:<6} {path}"
    ).rstrip()


def cmd_scan(args):
    """List code blocks in a transcript with their suggested names"""
    config = load_config()
    try:
        blocks = scan_text(_read_transcript(args.file), _FORMAT_CHOICES[args.format], _limits(config))
    except OSError as e:
        print(f"Error: {e}")
        return 1

    registry = DestinationRegistry(destinations_path())
    history = DirectoryHistory(history_path())
    try:
        destination = registry.select(args.dest)
    except NoDestinationsError:
        destination = None
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1

    rows = []
    for block in blocks:
        path = suggest_path(block.result, destination.id, history) if destination else ""
        rows.append((block, path))

    if args.json:
        payload = []
        for block, path in rows:
            entry = block.result.to_dict()
            entry.update({"index": block.index, "language": block.unit.language, "path": path})
            payload.append(entry)
        print(json.dumps(payload, indent=2))
        return 0

    if not rows:
        print("No code blocks found")
        return 0

    if destination:
        print(f"Destination: {destination.name} ({destination.root})")
    for block, path in rows:
        print(_block_line(block, path))
    return 0


def cmd_save(args):
    """Save one code block from a transcript"""
    config = load_config()
    try:
        blocks = scan_text(_read_transcript(args.file), _FORMAT_CHOICES[args.format], _limits(config))
    except OSError as e:
        print(f"Error: {e}")
        return 1

    if not 0 <= args.block < len(blocks):
        print(f"Error: block {args.block} not found ({len(blocks)} code block(s) in {args.file})")
        return 1
    block = blocks[args.block]

    saver = CodeSaver.from_config()
    try:
        prompt = saver.prepare(block.unit, block.context, args.dest)
        destination = saver.registry.get(prompt.destination_id)
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1

    if prompt.result.confidence is not Confidence.NONE:
        print(f"Detected from {prompt.result.provenance.value}: {prompt.result.suggested_name}")

    if args.path:
        prompt.edit(args.path)
    elif not args.yes:
        try:
            answer = input(f"Path in {destination.name} [{prompt.path}]: ").strip()
        except EOFError:
            # no terminal; keep the suggestion
            print()
            answer = ""
        if answer:
            prompt.edit(answer)

    print(f"Saving to {prompt.preview(destination.root)}")
    try:
        response = saver.commit(prompt, block.unit.content)
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1

    if response.get("success"):
        print(f"Saved to {response.get('full_path')}")
        return 0
    print(f"Save failed: {response.get('error')}")
    return 1


def cmd_dest_list(args):
    """List destinations"""
    registry = DestinationRegistry(destinations_path())
    try:
        destinations = registry.for_display()
        default = registry.default_id()
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps(registry.export_config(), indent=2))
        return 0

    if not destinations:
        print("No destinations configured")
        return 0

    print(f"{'ID':<30} {'Name':<20} {'Root'}")
    print("-" * 70)
    for destination in destinations:
        marker = " (default)" if destination.id == default else ""
        print(f"{destination.id:<30} {destination.name[:20]:<20} {destination.root}{marker}")
    return 0


def cmd_dest_add(args):
    """Add a destination"""
    try:
        destination = DestinationRegistry(destinations_path()).add(args.name, args.root)
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1
    print(f"Added destination '{destination.name}' ({destination.id})")
    return 0


def cmd_dest_edit(args):
    """Rename a destination or move its root"""
    try:
        destination = DestinationRegistry(destinations_path()).update(
            args.id, name=args.name, root=args.root
        )
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1
    print(f"Updated destination '{destination.name}' -> {destination.root}")
    return 0


def cmd_dest_remove(args):
    """Delete a destination"""
    try:
        DestinationRegistry(destinations_path()).remove(args.id)
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1
    print(f"Removed destination '{args.id}'")
    return 0


def cmd_dest_default(args):
    """Set the default destination"""
    try:
        DestinationRegistry(destinations_path()).set_default(args.id)
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1
    print(f"Default destination is now '{args.id}'")
    return 0


def cmd_dest_export(args):
    """Export destinations as JSON"""
    try:
        config = DestinationRegistry(destinations_path()).export_config()
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1

    text = json.dumps(config, indent=2)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Exported {len(config['destinations'])} destination(s) to {args.output}")
    else:
        print(text)
    return 0


def cmd_dest_import(args):
    """Replace destinations with an exported JSON file"""
    try:
        data = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"Import failed: {e}")
        return 1

    if not args.yes:
        count = len(data.get("destinations", data.get("projects", []))) if isinstance(data, dict) else 0
        try:
            answer = input(
                f"Import {count} destination(s)? This will replace your current configuration. [y/N] "
            )
        except EOFError:
            answer = ""
        if answer.strip().lower() not in ("y", "yes"):
            print("Import cancelled")
            return 0

    try:
        count = DestinationRegistry(destinations_path()).import_config(data)
    except CodeSaverError as e:
        print(f"Import failed: {e}")
        return 1
    print(f"Imported {count} destination(s)")
    return 0


def cmd_history_show(args):
    """Show recently used paths"""
    history = DirectoryHistory(history_path())
    destinations = [args.dest] if args.dest else history.destinations()

    if args.json:
        print(json.dumps({dest: history.recent_paths(dest) for dest in destinations}, indent=2))
        return 0

    if not destinations:
        print("No saved paths yet")
        return 0

    for dest in destinations:
        print(f"{dest}:")
        paths = history.recent_paths(dest)
        if not paths:
            print("  (empty)")
        for path in paths:
            print(f"  {path}")
    return 0


def cmd_history_clear(args):
    """Forget recently used paths of a destination"""
    if DirectoryHistory(history_path()).clear(args.dest):
        print(f"Cleared history for '{args.dest}'")
    else:
        print(f"No history for '{args.dest}'")
    return 0


def cmd_host(args):
    """Serve save requests on stdin/stdout"""
    serve(sys.stdin.buffer, sys.stdout.buffer)
    return 0


def cmd_ping(args):
    """Check the host can be started and answers"""
    config = load_config()
    client = HostClient(config["host_command"], timeout=config["host_timeout"])
    response = client.request({"action": "ping"})
    if response.get("success") is True:
        print("Host connected")
        return 0
    print(f"Not connected: {response.get('error', 'Unknown error')}")
    return 1


def cmd_watch(args):
    """Print suggestions for code blocks as they appear in a transcript"""
    config = load_config()
    registry = DestinationRegistry(destinations_path())
    history = DirectoryHistory(history_path())
    try:
        destination = registry.select(args.dest)
    except NoDestinationsError:
        destination = None
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1

    def report(block: BlockSuggestion) -> None:
        path = ""
        if destination:
            path = join_path(destination.root, suggest_path(block.result, destination.id, history))
        print(_block_line(block, path), flush=True)

    watcher = TranscriptWatcher(
        Path(args.file), report, _FORMAT_CHOICES[args.format], _limits(config)
    )
    print(f"Watching {args.file} (Ctrl+C to stop)")
    try:
        watcher.run(duration=args.duration)
    except CodeSaverError as e:
        print(f"Error: {e}")
        return 1
    return 0


def _configure_logging(args) -> None:
    # Handlers first: loading the config may already log
    if getattr(args, "command", None) == "host":
        # stdout carries protocol frames and the client merges stderr into it
        directory = log_dir()
        directory.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            filename=str(directory / "host.log"),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.basicConfig()

    config = load_config()
    unknown_level = None
    if args.debug:
        level = logging.DEBUG
    else:
        level_name = config.get("log_level", "INFO")
        level = getattr(logging, str(level_name).upper(), None)
        if not isinstance(level, int):
            unknown_level = level_name
            level = logging.INFO
    logging.getLogger().setLevel(level)

    if unknown_level is not None:
        logging.warning(
            "Unknown log level '%s' in configuration. Falling back to INFO.",
            unknown_level,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-saver",
        description="Save code blocks from chat transcripts into your projects",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    transcript_parent = argparse.ArgumentParser(add_help=False)
    transcript_parent.add_argument("file", help="Transcript file (HTML or Markdown)")
    transcript_parent.add_argument(
        "--format", choices=list(_FORMAT_CHOICES.keys()), default="auto", help="Transcript format"
    )
    transcript_parent.add_argument("--dest", help="Destination id (default: last used)")

    # scan command
    scan_parser = subparsers.add_parser("scan", parents=[transcript_parent], help="List code blocks and suggested names")
    scan_parser.add_argument("--json", action="store_true", help="JSON output")
    scan_parser.set_defaults(func=cmd_scan)

    # save command
    save_parser = subparsers.add_parser("save", parents=[transcript_parent], help="Save a code block")
    save_parser.add_argument("--block", type=int, default=0, help="Index of the code block (see scan)")
    save_parser.add_argument("--path", help="Relative path, overriding the suggestion")
    save_parser.add_argument("--yes", action="store_true", help="Accept the suggested path without asking")
    save_parser.set_defaults(func=cmd_save)

    # watch command
    watch_parser = subparsers.add_parser("watch", parents=[transcript_parent], help="Report code blocks as they appear")
    watch_parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    watch_parser.set_defaults(func=cmd_watch)

    # dest command
    dest_parser = subparsers.add_parser("dest", help="Manage save destinations")
    dest_subparsers = dest_parser.add_subparsers(dest="dest_command", help="Destination commands")

    dest_list_parser = dest_subparsers.add_parser("list", help="List destinations")
    dest_list_parser.add_argument("--json", action="store_true", help="JSON output")
    dest_list_parser.set_defaults(func=cmd_dest_list)

    dest_add_parser = dest_subparsers.add_parser("add", help="Add a destination")
    dest_add_parser.add_argument("name", help="Display name")
    dest_add_parser.add_argument("root", help="Absolute root directory")
    dest_add_parser.set_defaults(func=cmd_dest_add)

    dest_edit_parser = dest_subparsers.add_parser("edit", help="Edit a destination")
    dest_edit_parser.add_argument("id", help="Destination id")
    dest_edit_parser.add_argument("--name", help="New display name")
    dest_edit_parser.add_argument("--root", help="New absolute root directory")
    dest_edit_parser.set_defaults(func=cmd_dest_edit)

    dest_remove_parser = dest_subparsers.add_parser("remove", help="Delete a destination")
    dest_remove_parser.add_argument("id", help="Destination id")
    dest_remove_parser.set_defaults(func=cmd_dest_remove)

    dest_default_parser = dest_subparsers.add_parser("default", help="Set the default destination")
    dest_default_parser.add_argument("id", help="Destination id")
    dest_default_parser.set_defaults(func=cmd_dest_default)

    dest_export_parser = dest_subparsers.add_parser("export", help="Export destinations as JSON")
    dest_export_parser.add_argument("--output", help="Write to file instead of stdout")
    dest_export_parser.set_defaults(func=cmd_dest_export)

    dest_import_parser = dest_subparsers.add_parser("import", help="Import destinations from JSON")
    dest_import_parser.add_argument("file", help="Exported configuration")
    dest_import_parser.add_argument("--yes", action="store_true", help="Replace without asking")
    dest_import_parser.set_defaults(func=cmd_dest_import)

    # history command
    history_parser = subparsers.add_parser("history", help="Recently used paths")
    history_subparsers = history_parser.add_subparsers(dest="history_command", help="History commands")

    history_show_parser = history_subparsers.add_parser("show", help="Show recent paths")
    history_show_parser.add_argument("dest", nargs="?", help="Destination id (default: all)")
    history_show_parser.add_argument("--json", action="store_true", help="JSON output")
    history_show_parser.set_defaults(func=cmd_history_show)

    history_clear_parser = history_subparsers.add_parser("clear", help="Forget recent paths")
    history_clear_parser.add_argument("dest", help="Destination id")
    history_clear_parser.set_defaults(func=cmd_history_clear)

    # host command
    host_parser = subparsers.add_parser("host", help="Serve save requests on stdin/stdout")
    host_parser.set_defaults(func=cmd_host)

    # ping command
    ping_parser = subparsers.add_parser("ping", help="Test the connection to the host")
    ping_parser.set_defaults(func=cmd_ping)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args)

    # Run command
    if hasattr(args, "func"):
        return args.func(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
