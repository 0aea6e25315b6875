"""Locating, reading and writing JSON locale catalogs."""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from i18n_sync.errors import StructuralError

logger = logging.getLogger(__name__)

CATALOG_SUFFIX = '.json'
IGNORED_DIRS = frozenset({'.git', 'node_modules'})


def find_catalog_dir(start_dir: str, dir_name: str) -> Optional[str]:
    """
    Depth-first search below ``start_dir`` for a directory called ``dir_name``.

    Entries are visited in sorted order so the result is stable across
    platforms. Symlinked directories are not followed.

    Returns:
        The absolute path of the first match, or None.
    """
    try:
        entries = sorted(os.scandir(start_dir), key=lambda entry: entry.name)
    except OSError as exc:
        logger.debug("Cannot list '%s': %s", start_dir, exc)
        return None

    for entry in entries:
        if not entry.is_dir(follow_symlinks=False) or entry.name in IGNORED_DIRS:
            continue
        if entry.name == dir_name:
            return os.path.abspath(entry.path)
        found = find_catalog_dir(entry.path, dir_name)
        if found:
            return found
    return None


def list_target_catalogs(catalog_dir: str, source_file_name: str) -> List[str]:
    """Return the file names of every catalog in ``catalog_dir`` except the source."""
    return sorted(
        name for name in os.listdir(catalog_dir)
        if name.endswith(CATALOG_SUFFIX)
        and name != source_file_name
        and os.path.isfile(os.path.join(catalog_dir, name))
    )


def language_tag_from_filename(file_name: str) -> str:
    """``de.json`` -> ``de``; ``pt-BR.json`` -> ``pt-BR``."""
    base_name = os.path.basename(file_name)
    if base_name.endswith(CATALOG_SUFFIX):
        return base_name[:-len(CATALOG_SUFFIX)]
    return base_name


def load_catalog(file_path: str) -> Dict[str, Any]:
    """
    Read a catalog file.

    Raises:
        StructuralError: If the file is not JSON or its root is not an object.
        OSError: If the file cannot be read.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        content = f.read()
    try:
        catalog = json.loads(content)
    except json.JSONDecodeError as json_exc:
        raise StructuralError(f"'{file_path}' is not valid JSON: {json_exc}") from json_exc
    if not isinstance(catalog, dict):
        raise StructuralError(
            f"'{file_path}' must contain a JSON object at the top level, found {type(catalog).__name__}."
        )
    return catalog


def dump_catalog(catalog: Dict[str, Any]) -> str:
    """Serialize a catalog in key insertion order with a trailing newline."""
    return json.dumps(catalog, indent=2, ensure_ascii=False) + '\n'


def write_catalog(file_path: str, catalog: Dict[str, Any]) -> None:
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(dump_catalog(catalog))
