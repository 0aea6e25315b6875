import re
from collections import Counter
from typing import List

# ICU/MessageFormat arguments such as {0} or {name}, and printf tokens such as %s, %d or %1$s.
PLACEHOLDER_REGEX = re.compile(r'\{([^{}]+)\}|(%(?:\d+\$)?[sd])')

MOJIBAKE_REGEX = re.compile(r'Ã[\x80-\xff]')


def _placeholders(text: str) -> Counter:
    return Counter(match.group(0) for match in PLACEHOLDER_REGEX.finditer(text))


def check_placeholder_parity(source_text: str, translated_text: str) -> bool:
    """
    Check that a translation kept every placeholder of its source text.

    Placeholders may be reordered but each one must appear the same number of
    times, e.g. ``"Hello {name}"`` and ``"Hallo {name}"`` match while
    ``"Hallo {nom}"`` does not.
    """
    return _placeholders(source_text) == _placeholders(translated_text)


def find_encoding_issues(text: str) -> List[str]:
    """
    Detect signs of a broken encoding round-trip in a translated string.

    Returns:
        Human-readable descriptions of the problems; empty if none were found.
    """
    issues = []
    # 'Ã' followed by a byte in 0x80-0xFF is UTF-8 text decoded as latin-1/cp1252.
    if MOJIBAKE_REGEX.search(text):
        issues.append("Potential mojibake detected (patterns like 'Ã¼', 'Ã¤').")
    if '\uFFFD' in text:
        issues.append("Contains the Unicode replacement character (U+FFFD).")
    return issues
