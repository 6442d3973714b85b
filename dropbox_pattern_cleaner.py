#!/usr/bin/env python3
"""
Dropbox Pattern Cleaner
=======================
Lists every file under a Dropbox folder, picks the ones whose name matches a
regular expression, optionally previews their thumbnails, and deletes them in
one batch after confirmation.

Usage:
    python3 dropbox_pattern_cleaner.py                                   # Fully interactive
    python3 dropbox_pattern_cleaner.py --path "/Camera Uploads" --regex "_old\\.jpg$"
    python3 dropbox_pattern_cleaner.py --path "/Camera Uploads" --regex "\\.tmp$" --dry-run
"""

import argparse
import getpass
import logging
import sys
from datetime import datetime

import requests
from dropbox.dropbox_client import BadInputException
from dropbox.exceptions import AuthError, BadInputError

from config import ConfigError, load_config
from core.enumerator import FolderEnumerator
from core.filtering import InvalidPattern, compile_pattern, filter_files
from core.poller import BatchDeletionPoller
from core.preview import PreviewGenerator
from logger_setup import format_api_error, log_exception, setup_logger
from providers.dropbox_provider import dropbox_client_from_config

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_PATTERN = 2

logger = logging.getLogger("dropbox_pattern_cleaner")


def print_header():
    """Print application header."""
    print()
    print("╔══════════════════════════════════════════════════════════════╗")
    print("║        🗑️  DROPBOX PATTERN CLEANER                            ║")
    print("╚══════════════════════════════════════════════════════════════╝")
    print()


def print_section(title):
    """Print a section header."""
    print(f"\n{'─' * 60}")
    print(f"  {title}")
    print(f"{'─' * 60}")


def prompt(message, secret=False):
    if secret:
        return getpass.getpass(message).strip()
    return input(message).strip()


def ask_yes_no(message):
    return prompt(f"{message} y/n ").lower() == "y"


def gather_inputs(args, config):
    """Fill in token, folder path and regex from flags, .env, or prompts (in that order)."""
    token = args.token or config.access_token
    if not token:
        token = prompt("Dropbox API access token: ", secret=True)

    folder_path = args.path if args.path is not None else prompt("Dropbox folder path: ")
    regex = args.regex if args.regex is not None else prompt("Regex for files to delete: ")
    return token, folder_path, regex


def connect_dropbox(config):
    """Build the client and verify the token. Returns None if authentication fails."""
    try:
        client = dropbox_client_from_config(config)
        account = client.current_account()
    except (AuthError, BadInputError, BadInputException, requests.exceptions.RequestException) as e:
        log_exception(logger, "Authentication failed", e)
        print(f"❌ Authentication failed: {e}")
        return None
    logger.info(f"Connected as: {account}")
    print(f"✅ Connected as: {account}")
    return client


def collect_files_for_deletion(result, pattern):
    """Filter the listing and print the summary line."""
    matches = filter_files(result.files, pattern)

    print("\n==============================\n")
    if result.is_partial:
        print(f"⚠️  {len(result.failed_paths)} folder(s) could not be listed; results are partial:")
        for path in result.failed_paths:
            print(f"   - {path or '/'}")
        print()

    if matches:
        print(f"Found {len(matches)} matching files out of {len(result.files)} total files "
              f"({result.entries_seen} entries scanned)\n")
    else:
        print(f"No matching files found ({result.entries_seen} entries scanned)")
    logger.info(f"{len(matches)} of {len(result.files)} files match /{pattern.pattern}/")
    return matches


def save_report(folder_path, pattern, matches, outcome=None):
    """Save a report of matched (and possibly deleted) files."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"pattern_cleaner_report_{timestamp}.txt"

    with open(filename, 'w', encoding='utf-8') as f:
        f.write("DROPBOX PATTERN CLEANER REPORT\n")
        f.write("=" * 60 + "\n")
        f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"Folder scanned: {folder_path if folder_path else '/ (entire Dropbox)'}\n")
        f.write(f"Pattern: {pattern.pattern}\n")
        if outcome is not None:
            f.write(f"Deletion status: {outcome.status.value}\n")
            if outcome.reason:
                f.write(f"Reason: {outcome.reason}\n")
        f.write("=" * 60 + "\n\n")

        f.write(f"Matching files: {len(matches)}\n\n")
        for record in matches:
            f.write(f"  {record.path_display}\n")

        if outcome is not None and outcome.failed_paths:
            f.write(f"\nFailed to delete: {len(outcome.failed_paths)}\n\n")
            for path in outcome.failed_paths:
                f.write(f"  ✗ {path}\n")

    print(f"\n📄 Report saved: {filename}")
    return filename


def execute_deletion(client, config, matches):
    """Delete matches and wait for the batch job. Returns the DeleteOutcome."""
    print("Deleting files")

    def show_progress(marker):
        sys.stdout.write(marker)
        sys.stdout.flush()

    poller = BatchDeletionPoller(
        client,
        poll_interval=config.poll_interval,
        deadline=config.poll_deadline,
        progress=show_progress,
    )
    outcome = poller.delete([f.path_lower for f in matches])

    if outcome.succeeded:
        print("\nSuccess!")
        if outcome.failed_paths:
            print(f"⚠️  {len(outcome.failed_paths)} file(s) could not be deleted:")
            for path in outcome.failed_paths:
                print(f"   ✗ {path}")
    else:
        print(f"\n❌ Batch deletion failed: {outcome.reason or outcome.status.value}")
    return outcome


def build_parser():
    parser = argparse.ArgumentParser(
        description="Delete Dropbox files whose names match a regular expression",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 dropbox_pattern_cleaner.py                                     # Prompt for everything
  python3 dropbox_pattern_cleaner.py --path "/Photos" --regex "_old\\.jpg$"
  python3 dropbox_pattern_cleaner.py --path "" --regex "\\.tmp$" --dry-run   # Whole Dropbox, no deletion
        """
    )
    parser.add_argument("--token", help="Dropbox access token (default: DROPBOX_ACCESS_TOKEN or prompt)")
    parser.add_argument("--path", help="Folder to scan (use \"\" for the whole Dropbox)")
    parser.add_argument("--regex", help="Regular expression matched against file names")

    preview = parser.add_mutually_exclusive_group()
    preview.add_argument("--preview", dest="preview", action="store_true", default=None,
                         help="Generate a thumbnail preview without asking")
    preview.add_argument("--no-preview", dest="preview", action="store_false",
                         help="Skip the preview without asking")

    parser.add_argument("--yes", action="store_true", help="Skip the final confirmation")
    parser.add_argument("--dry-run", action="store_true", help="Stop after listing matches")
    parser.add_argument("--report", action="store_true", help="Save a report file of matched files")
    parser.add_argument("--page-limit", type=int, help="Entries per listing page")
    parser.add_argument("--poll-interval", type=float, help="Seconds between job status checks")
    parser.add_argument("--deadline", type=float, help="Give up polling after this many seconds")
    parser.add_argument("--env-file", help="Path to a .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging on the console")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.env_file).with_overrides(
            page_limit=args.page_limit,
            poll_interval=args.poll_interval,
            poll_deadline=args.deadline,
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        print(f"❌ Configuration error: {e}")
        return EXIT_FAILURE
    _, log_file = setup_logger(
        "dropbox_pattern_cleaner",
        log_prefix=config.log_prefix,
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    print_header()
    token, folder_path, regex = gather_inputs(args, config)
    config = config.with_overrides(access_token=token)

    # Validate the pattern before touching the API
    try:
        pattern = compile_pattern(regex)
    except InvalidPattern as e:
        logger.error(str(e))
        print(f"❌ Invalid regex provided: {regex}")
        return EXIT_BAD_PATTERN

    client = connect_dropbox(config)
    if client is None:
        return EXIT_FAILURE

    print_section(f"LISTING {folder_path or '/ (entire Dropbox)'}")
    matches = []
    enumerator = FolderEnumerator(client, page_limit=config.page_limit, max_workers=config.max_workers)
    enumerator.run(folder_path, on_complete=lambda result: matches.extend(
        collect_files_for_deletion(result, pattern)))

    if not matches:
        return EXIT_OK

    if args.report:
        save_report(folder_path, pattern, matches)

    if args.dry_run:
        print("💡 This was a dry run. No files were deleted.")
        return EXIT_OK

    want_preview = args.preview if args.preview is not None else ask_yes_no("Preview files before continuing?")
    if want_preview:
        print("\nGenerating preview. Please be patient...")
        generator = PreviewGenerator(
            client,
            thumbnail_dir=config.thumbnail_dir,
            preview_file=config.preview_file,
            batch_size=config.thumbnail_batch_size,
        )
        preview_path = generator.generate(matches)
        print(f"🖼️  Preview opened: {preview_path}")

    if not (args.yes or ask_yes_no("Are you ready to commence deletion?")):
        print("Ok, then... goodbye!")
        return EXIT_OK

    print("Ok, lets do this thang!")
    try:
        outcome = execute_deletion(client, config, matches)
    except KeyboardInterrupt:
        logger.warning("Interrupted while waiting for the delete job")
        print("\n⚠️  Interrupted. The deletion job may still finish on Dropbox.")
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Batch delete request failed: {format_api_error(e)}")
        logger.debug("Batch delete stack trace", exc_info=e)
        print(f"\n❌ Batch delete request failed: {e}")
        return EXIT_FAILURE

    if args.report:
        save_report(folder_path, pattern, matches, outcome)
    if log_file:
        print(f"📝 Log: {log_file}")
    return EXIT_OK if outcome.succeeded else EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
