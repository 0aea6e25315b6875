"""Per-catalog synchronization: diff, translate in batches, persist."""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from i18n_sync.app_config import AppConfig
from i18n_sync.batch_planner import plan_batches
from i18n_sync.batch_reconciler import BatchReconciler, TranslationClient
from i18n_sync.catalog_io import language_tag_from_filename, load_catalog, write_catalog
from i18n_sync.retry import RetryPolicy
from i18n_sync.tree_differ import TranslationTask, diff_catalogs

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    added_count: int = 0
    translated_count: int = 0
    written: bool = False

    @property
    def changed(self) -> bool:
        return self.added_count > 0 or self.translated_count > 0


@dataclass
class SyncSummary:
    results: Dict[str, SyncResult] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def total_added(self) -> int:
        return sum(result.added_count for result in self.results.values())

    @property
    def total_translated(self) -> int:
        return sum(result.translated_count for result in self.results.values())


class SyncOrchestrator:
    """
    Brings every target catalog up to date with the source catalog.

    Catalogs, batches and tasks are processed strictly one after another.
    A catalog that fails for any reason is skipped without being written and
    the run moves on to the next one.
    """

    def __init__(
            self,
            config: AppConfig,
            translation_client: Optional[TranslationClient] = None,
            retry_policy: Optional[RetryPolicy] = None
    ):
        self.config = config
        self.translation_client = translation_client
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.retry_attempts,
            base_delay=config.retry_base_delay,
            timeout=config.request_timeout
        )

    async def run(
            self,
            catalog_dir: str,
            source_tree: Dict[str, Any],
            target_file_names: List[str],
            translate: bool
    ) -> SyncSummary:
        summary = SyncSummary()
        source_language = language_tag_from_filename(self.config.source_file_name)

        logger.info("Starting sync for %d locales...", len(target_file_names))
        for file_name in target_file_names:
            target_path = os.path.join(catalog_dir, file_name)
            try:
                summary.results[file_name] = await self.sync_catalog(
                    source_tree, target_path, source_language, translate
                )
            except Exception as exc:
                logger.warning("%s: skipped due to error: %s", file_name, exc)
                summary.skipped[file_name] = str(exc)

        return summary

    async def sync_catalog(
            self,
            source_tree: Dict[str, Any],
            target_path: str,
            source_language: Optional[str],
            translate: bool
    ) -> SyncResult:
        """
        Synchronize one target catalog file.

        Returns:
            SyncResult with the number of added and translated leaves.
        """
        file_name = os.path.basename(target_path)
        target_language = language_tag_from_filename(file_name)
        target_tree = load_catalog(target_path)

        target_tree, tasks = diff_catalogs(source_tree, target_tree)
        result = SyncResult(added_count=len(tasks))

        if translate and tasks:
            if self.translation_client is None:
                logger.warning("Skipping translation for %s: OPENAI_API_KEY not set.", file_name)
            else:
                result.translated_count = await self.translate_tasks(
                    tasks, target_tree, source_language, target_language
                )

        if not result.changed:
            logger.info("%s: no changes.", file_name)
            return result

        if self.config.dry_run:
            logger.info("[Dry Run] Would write %d added leaves to '%s'.", result.added_count, target_path)
        else:
            write_catalog(target_path, target_tree)
            result.written = True
        logger.info("%s: added %d, translated %d.", file_name, result.added_count, result.translated_count)
        return result

    async def translate_tasks(
            self,
            tasks: List[TranslationTask],
            target_tree: Dict[str, Any],
            source_language: Optional[str],
            target_language: str
    ) -> int:
        """Translate ``tasks`` batch by batch into ``target_tree``; returns the translated leaf count."""
        reconciler = BatchReconciler(self.translation_client, self.retry_policy)
        batches = plan_batches(tasks, self.config.batch_size)
        translated_count = 0

        with tqdm(
                total=len(batches),
                desc=f"Translating {target_language}",
                unit="batch",
                disable=not self.config.show_progress
        ) as progress:
            for batch_index, batch in enumerate(batches, start=1):
                for task in batch:
                    progress.set_postfix_str(task.dotted_path)
                    logger.debug(
                        "%s: %d/%d -> %s", target_language, batch_index, len(batches), task.dotted_path
                    )
                _, outcome = await reconciler.reconcile(batch, target_tree, source_language, target_language)
                translated_count += outcome.translated_count
                if outcome.fallback_count:
                    logger.warning(
                        "%s: batch %d/%d kept source text for %d of %d keys.",
                        target_language, batch_index, len(batches), outcome.fallback_count, len(batch)
                    )
                progress.update(1)

        return translated_count
