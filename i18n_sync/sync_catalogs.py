"""
Command line entry point: add missing keys to every locale catalog and
optionally translate them.

Exit codes:
    0  at least one key was added
    2  every catalog was already up to date
    1  the run could not start (no catalog directory, unreadable source, ...)
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

# --- Python Version Check ---
if sys.version_info < (3, 11):
    sys.stderr.write("Error: i18n-sync requires Python 3.11 or newer.\n")
    sys.stderr.write(f"You are running Python {sys.version.split()[0]}.\n")
    sys.exit(1)
# --- End Version Check ---

from aiolimiter import AsyncLimiter

from i18n_sync.app_config import AppConfig, load_app_config
from i18n_sync.catalog_io import find_catalog_dir, list_target_catalogs, load_catalog
from i18n_sync.errors import StructuralError, UnrecoverableError
from i18n_sync.sync_orchestrator import SyncOrchestrator, SyncSummary
from i18n_sync.translation_client import OpenAITranslationClient

logger = logging.getLogger(__name__)

EXIT_CHANGED = 0
EXIT_FAILURE = 1
EXIT_UP_TO_DATE = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="i18n-sync",
        description="Add keys missing from locale catalogs and optionally translate them."
    )
    parser.add_argument(
        "source_file", nargs="?", default=None,
        help="Source catalog file name inside the catalog directory (default: en.json)"
    )
    parser.add_argument("--translate", action="store_true", help="Translate added keys with OpenAI")
    parser.add_argument("--root", default=None, help="Directory to search for the catalog directory")
    parser.add_argument(
        "--dry-run", action="store_true", default=None,
        help="Report what would change without writing any catalog"
    )
    return parser.parse_args(argv)


def build_translation_client(config: AppConfig) -> Optional[OpenAITranslationClient]:
    if config.openai_client is None:
        return None
    return OpenAITranslationClient(
        client=config.openai_client,
        model_name=config.model_name,
        language_codes=config.language_codes,
        rate_limiter=AsyncLimiter(max_rate=config.requests_per_minute, time_period=60)
    )


def load_source_catalog(config: AppConfig) -> Tuple[str, Dict[str, Any]]:
    """
    Locate the catalog directory and read the source catalog.

    Raises:
        UnrecoverableError: If either step fails.
    """
    catalog_dir = find_catalog_dir(config.search_root, config.catalog_dir_name)
    if not catalog_dir:
        raise UnrecoverableError(
            f"Could not find a '{config.catalog_dir_name}' directory below '{config.search_root}'."
        )

    source_path = os.path.join(catalog_dir, config.source_file_name)
    try:
        source_tree = load_catalog(source_path)
    except (OSError, StructuralError) as exc:
        raise UnrecoverableError(f"Could not read source catalog '{source_path}': {exc}") from exc
    return catalog_dir, source_tree


def write_skipped_report(report_path: str, skipped: Dict[str, str]) -> None:
    """Write a Markdown report of skipped catalogs, or remove a stale one."""
    if not skipped:
        if os.path.exists(report_path):
            os.remove(report_path)
        return

    report_dir = os.path.dirname(report_path)
    if report_dir:
        os.makedirs(report_dir, exist_ok=True)
    logger.info("Some catalogs were skipped. Writing report to %s", report_path)
    with open(report_path, 'w', encoding='utf-8') as f:
        f.write("## ⚠️ Catalog Sync Warnings\n\n")
        f.write("The following catalogs were skipped and left unchanged. These issues must be addressed manually.\n\n")
        for file_name, error in skipped.items():
            f.write(f"### 📄 `{file_name}`\n")
            f.write(f"- {error}\n\n")


def report_summary(summary: SyncSummary) -> int:
    if summary.skipped:
        logger.warning("%d catalog(s) skipped: %s", len(summary.skipped), ", ".join(summary.skipped))

    if summary.total_added == 0:
        if summary.skipped:
            logger.warning(
                "No keys added. Added 0. Translated 0. %d of %d catalog(s) were skipped and not checked.",
                len(summary.skipped), len(summary.skipped) + len(summary.results)
            )
        else:
            logger.info("All locale files are already up to date.")
        return EXIT_UP_TO_DATE

    logger.info("Done. Added %d. Translated %d.", summary.total_added, summary.total_translated)
    return EXIT_CHANGED


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one sync over every target catalog.

    Returns:
        The process exit code.
    """
    args = parse_args(argv)
    config = load_app_config(
        translate=args.translate,
        source_file_name=args.source_file,
        search_root=args.root,
        dry_run=args.dry_run
    )

    try:
        catalog_dir, source_tree = load_source_catalog(config)
    except UnrecoverableError as exc:
        logger.critical("%s", exc)
        return EXIT_FAILURE

    target_file_names = list_target_catalogs(catalog_dir, config.source_file_name)
    orchestrator = SyncOrchestrator(config, translation_client=build_translation_client(config))
    summary = await orchestrator.run(catalog_dir, source_tree, target_file_names, translate=args.translate)

    report_path = config.skipped_report_path
    if not os.path.isabs(report_path):
        report_path = os.path.join(config.project_root, report_path)
    write_skipped_report(report_path, summary.skipped)

    return report_summary(summary)


def run() -> None:
    try:
        exit_code = asyncio.run(main())
    except Exception as main_exc:
        logger.critical("An unexpected error occurred during execution: %s", main_exc, exc_info=True)
        exit_code = EXIT_FAILURE
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
