"""
Structural diff between a source catalog and a target catalog.

Catalog trees are plain JSON values: ``dict`` for objects, ``list`` for
arrays (never traversed) and scalars for leaves.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class TranslationTask:
    """One missing target leaf and the source text it should be filled from."""
    path: Tuple[str, ...]
    source_text: str

    @property
    def dotted_path(self) -> str:
        return '.'.join(self.path)

    @property
    def is_translatable(self) -> bool:
        # Whitespace-only text is treated like empty text and never sent out.
        return bool(self.source_text.strip())


def is_catalog_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_missing_leaf(target_value: Any) -> bool:
    """A target leaf needs filling unless it already holds a non-empty string."""
    return not isinstance(target_value, str) or target_value == ''


def diff_catalogs(
        source: Dict[str, Any],
        target: Dict[str, Any]
) -> Tuple[Dict[str, Any], List[TranslationTask]]:
    """
    Walk ``source`` and ``target`` together and insert placeholders for missing leaves.

    The traversal is depth-first, pre-order, following the source's key
    insertion order. Every string leaf of the source that is absent, empty or
    not a string in the target gets an empty-string placeholder in the target
    and one ``TranslationTask``. Source objects force an object at the same
    target path (replacing whatever non-object value was there). Numbers,
    booleans, null and arrays in the source are ignored.

    The target is mutated in place and also returned; the source is not touched.

    Args:
        source: The authoritative catalog.
        target: The locale catalog to complete.

    Returns:
        The updated target and the tasks in discovery order.
    """
    tasks: List[TranslationTask] = []
    _collect_missing(source, target, (), tasks)
    return target, tasks


def _collect_missing(
        source: Dict[str, Any],
        target: Dict[str, Any],
        key_path: Tuple[str, ...],
        tasks: List[TranslationTask]
) -> None:
    for key, source_value in source.items():
        current_path = key_path + (key,)

        if is_catalog_object(source_value):
            if not is_catalog_object(target.get(key)):
                target[key] = {}
            _collect_missing(source_value, target[key], current_path, tasks)
            continue

        if not isinstance(source_value, str):
            continue

        if is_missing_leaf(target.get(key)):
            target[key] = ''
            tasks.append(TranslationTask(path=current_path, source_text=source_value))


def set_leaf(tree: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    """
    Write ``value`` at ``path``, creating intermediate objects as needed.

    Intermediate values that are not objects are replaced by empty objects.
    """
    if not path:
        raise ValueError("Cannot write a leaf at an empty path.")

    current = tree
    for key in path[:-1]:
        if not is_catalog_object(current.get(key)):
            current[key] = {}
        current = current[key]
    current[path[-1]] = value
