#!/usr/bin/env python3
"""
Image Ops - CLI tool for moving, copying, linking and deleting images.

Companion files (sidecars such as .txt/.json captions) always travel with
their image.

Usage:
  python image_ops_cli.py move photo.jpg --to ./sorted
  python image_ops_cli.py copy a.jpg b.png c.webp --to ./backup --on-conflict skip
  python image_ops_cli.py link photo.jpg --to ./favorites
  python image_ops_cli.py move-dir ./shoot_01 --to ./archive --name 2024_shoot_01
  python image_ops_cli.py delete old.jpg --yes
  python image_ops_cli.py delete-dir ./rejects --yes

Exit code is 0 on success, 1 if any error was reported.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import file_ops
from config_manager import ConfigManager
from conflict_resolution import resolver_for_policy
from operation_handler import ImageOperationHandler
from ui_ports import AutoConfirmPrompt, HeadlessBrowserContext, LoggingMessageSink

logger = logging.getLogger(__name__)

TRANSFER_COMMANDS = ('move', 'copy', 'link')
DIRECTORY_COMMANDS = ('move-dir', 'copy-dir', 'link-dir')


class ConsolePrompt:
    """UserPrompt that asks on the terminal."""

    def __init__(self, name: Optional[str] = None):
        self.name = name

    def confirm(self, title: str, message: str) -> bool:
        print(f"{title}\n{message}")
        answer = input("Proceed? [y/N] ").strip().lower()
        return answer in ('y', 'yes')

    def ask_new_name(self, message: str, initial: str) -> Optional[str]:
        if self.name is not None:
            name, self.name = self.name, None
            return name
        answer = input(f"{message} [{initial}] ").strip()
        return answer or initial


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Move, copy, link and delete images together with their companion files."
    )
    parser.add_argument('--config', help="Path to JSON configuration file")
    parser.add_argument('--on-conflict', choices=['rename', 'overwrite', 'skip'], default='rename',
                        help="What to do when the destination already has a file with the same name")
    parser.add_argument('--yes', '-y', action='store_true', help="Answer yes to every confirmation")

    subparsers = parser.add_subparsers(dest='command', required=True)

    for command in TRANSFER_COMMANDS:
        sub = subparsers.add_parser(command, help=f"{command.capitalize()} images into a directory")
        sub.add_argument('sources', nargs='+', help="Image files")
        sub.add_argument('--to', required=True, dest='destination', help="Destination directory")

    for command in DIRECTORY_COMMANDS:
        verb = command.split('-')[0]
        sub = subparsers.add_parser(command, help=f"{verb.capitalize()} a whole directory")
        sub.add_argument('directory', help="Directory to process")
        sub.add_argument('--to', required=True, dest='destination', help="Directory to put it in")
        sub.add_argument('--name', help="New name for the directory")

    sub = subparsers.add_parser('delete', help="Delete images")
    sub.add_argument('sources', nargs='+', help="Image files")

    sub = subparsers.add_parser('delete-dir', help="Delete a directory and everything in it")
    sub.add_argument('directory', help="Directory to delete")

    return parser


class ImageOpsCLI:
    """Command-line interface over ImageOperationHandler."""

    def __init__(self, args, config: ConfigManager):
        self.args = args
        self.config = config
        self.messages = LoggingMessageSink()
        name = getattr(args, 'name', None)
        if args.yes:
            # Keep the directory's own name unless --name was given; a taken name cancels
            if name is None and getattr(args, 'directory', None):
                name = Path(args.directory).name
            self.prompt = AutoConfirmPrompt(answer=True, names=[name] if name else None)
        else:
            self.prompt = ConsolePrompt(name)
        self.context = HeadlessBrowserContext()
        self.handler = ImageOperationHandler(
            self.context,
            resolver_for_policy(args.on_conflict),
            self.messages,
            self.prompt,
            config=config
        )

    def run(self) -> int:
        command = self.args.command
        logger.debug(f"Running {command}")
        if command in TRANSFER_COMMANDS:
            self.do_transfer(command)
        elif command in DIRECTORY_COMMANDS:
            self.do_directory(command.split('-')[0])
        elif command == 'delete':
            self.do_delete()
        else:
            self.do_delete_directory()

        if self.messages.had_errors:
            for error in self.messages.errors:
                print(f"ERROR: {error}", file=sys.stderr)
            return 1
        return 0

    def do_transfer(self, verb: str) -> None:
        sources = self._existing_sources()
        if not sources:
            return
        destination = Path(self.args.destination)
        if len(sources) == 1:
            self.context.selected = sources[0]
            self.context.directory = sources[0].parent
            getattr(self.handler, f"{verb}_image")(destination)
        else:
            self.context.files = sources
            self.context.directory = sources[0].parent
            getattr(self.handler, f"{verb}_all_images")(destination)

    def do_directory(self, verb: str) -> None:
        self.context.directory = Path(self.args.directory)
        done = getattr(self.handler, f"{verb}_directory")(Path(self.args.destination))
        if not done and not self.messages.had_errors:
            self.messages.error(f"{verb.capitalize()} of {self.args.directory} was cancelled.")

    def _existing_sources(self):
        """Sources that exist; each missing one is reported as an error."""
        sources = []
        for source in map(Path, self.args.sources):
            if file_ops.path_exists(source):
                sources.append(source)
            else:
                self.messages.error(f"No such file: {source}")
        return sources

    def do_delete(self) -> None:
        sources = self._existing_sources()
        if not sources:
            return
        if len(sources) == 1:
            self.context.selected = sources[0]
            self.handler.delete_image()
        else:
            self.context.files = sources
            if self.handler.delete_all_images():
                self.handler.wait_for_worker()
                if not self.handler.active_worker.okay:
                    self.messages.error("Not all images were deleted.")

    def do_delete_directory(self) -> None:
        self.context.directory = Path(self.args.directory)
        if self.handler.delete_directory():
            self.handler.wait_for_worker()
            if file_ops.path_exists(self.args.directory):
                self.messages.error(f"{self.args.directory} was not completely deleted.")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = ConfigManager(args.config) if args.config else ConfigManager()
    logging.basicConfig(
        level=config.get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    cli = ImageOpsCLI(args, config)
    return cli.run()


if __name__ == '__main__':
    sys.exit(main())
