import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from i18n_sync.catalog_validator import check_placeholder_parity, find_encoding_issues
from i18n_sync.errors import ProviderError
from i18n_sync.retry import RETRYABLE_ERRORS, RetryPolicy
from i18n_sync.tree_differ import TranslationTask, set_leaf

logger = logging.getLogger(__name__)


class TranslationClient(Protocol):
    async def translate(
            self,
            texts: List[str],
            source_language: Optional[str],
            target_language: str
    ) -> List[str]:
        ...


@dataclass
class BatchOutcome:
    """Bookkeeping for one reconciled batch."""
    applied_count: int = 0
    fallback_count: int = 0

    @property
    def translated_count(self) -> int:
        return self.applied_count - self.fallback_count


class BatchReconciler:
    """
    Resolve every task of a batch to a final value and write it into the target tree.

    The batch is first sent as one bulk request. If that fails even after
    retries, each text is requested on its own, and a text whose own request
    also fails keeps its source text. A batch therefore always resolves fully;
    individual failures only show up as warnings and in ``fallback_count``.
    """

    def __init__(self, client: TranslationClient, retry_policy: Optional[RetryPolicy] = None):
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy()

    async def reconcile(
            self,
            batch: List[TranslationTask],
            target_tree: Dict[str, Any],
            source_language: Optional[str],
            target_language: str
    ) -> Tuple[Dict[str, Any], BatchOutcome]:
        values: List[str] = [''] * len(batch)
        fallback_indices = set()
        translatable = [i for i, task in enumerate(batch) if task.is_translatable]

        if translatable:
            texts = [batch[i].source_text for i in translatable]
            try:
                translated = await self._retry_policy.run(
                    lambda: self._request(texts, source_language, target_language),
                    description=f"Bulk translation of {len(texts)} texts to '{target_language}'"
                )
            except RETRYABLE_ERRORS:
                logger.warning(
                    "%s: bulk translation of %d texts failed; translating them one by one.",
                    target_language, len(texts)
                )
                for i in translatable:
                    value, translated_ok = await self._translate_single(batch[i], source_language, target_language)
                    values[i] = value
                    if not translated_ok:
                        fallback_indices.add(i)
            else:
                for i, value in zip(translatable, translated, strict=True):
                    values[i] = value

        outcome = BatchOutcome()
        for i, (task, value) in enumerate(zip(batch, values)):
            if i not in fallback_indices and value:
                self._report_suspicious(task, value, target_language)
            set_leaf(target_tree, task.path, value)
            outcome.applied_count += 1
        outcome.fallback_count = len(fallback_indices)

        return target_tree, outcome

    async def _request(
            self,
            texts: List[str],
            source_language: Optional[str],
            target_language: str
    ) -> List[str]:
        translated = await self._client.translate(texts, source_language, target_language)
        if len(translated) != len(texts):
            raise ProviderError(
                f"Translation client returned {len(translated)} results for {len(texts)} texts."
            )
        return translated

    async def _translate_single(
            self,
            task: TranslationTask,
            source_language: Optional[str],
            target_language: str
    ) -> Tuple[str, bool]:
        try:
            [value] = await self._retry_policy.run(
                lambda: self._request([task.source_text], source_language, target_language),
                description=f"Translation of '{task.dotted_path}' to '{target_language}'"
            )
        except RETRYABLE_ERRORS:
            logger.warning('%s: fallback for "%s"', target_language, task.source_text)
            return task.source_text, False
        return value, True

    @staticmethod
    def _report_suspicious(task: TranslationTask, value: str, target_language: str) -> None:
        if not check_placeholder_parity(task.source_text, value):
            logger.warning(
                "%s: placeholder mismatch for key '%s': %r -> %r",
                target_language, task.dotted_path, task.source_text, value
            )
        for issue in find_encoding_issues(value):
            logger.warning("%s: key '%s': %s", target_language, task.dotted_path, issue)
