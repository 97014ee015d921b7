import logging
import re
from typing import List, Optional

from .errors import InvalidVerseIndex

logger = logging.getLogger(__name__)

# Verses are separated by exactly one blank line
VERSE_DELIMITER = "\n\n"
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def verses(lyric_text: str) -> List[str]:
    """Split lyric text into verses. Consecutive delimiters yield empty verses."""
    return lyric_text.split(VERSE_DELIMITER)


def parse_verse_index(raw: Optional[str]) -> int:
    """Parse the ``verse`` query value; missing or empty means the whole text (0)."""
    if raw is None or raw == "":
        return 0
    if not isinstance(raw, str) or not _DECIMAL.fullmatch(raw.strip()):
        raise InvalidVerseIndex(f"verse must be an integer, got {raw!r}")
    return int(raw.strip())


def select_verse(lyric_text: str, verse_index: Optional[int] = 0) -> str:
    """Return verse ``verse_index`` (1-based) of the lyric, or all of it for 0/None."""
    if not verse_index:
        return lyric_text
    parts = verses(lyric_text)
    if verse_index < 0 or verse_index > len(parts):
        logger.debug("verse %s requested, lyric has %s", verse_index, len(parts))
        raise InvalidVerseIndex(f"verse must be between 0 and {len(parts)}, got {verse_index}")
    return parts[verse_index - 1]


__all__ = ["VERSE_DELIMITER", "verses", "parse_verse_index", "select_verse"]
