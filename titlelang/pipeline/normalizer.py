"""Stage 0 – Title normalisation.

Video titles are noisy: emoji, flags, ``Artist | Song / Remix`` separators
and runs of whitespace.  This stage strips those before any detector sees
the text, and decides whether what is left is long enough to classify.
"""

from __future__ import annotations

import re

from titlelang.exceptions import InputTooShort

# Below this many characters neither the statistical models nor the script
# heuristic give usable answers.
MIN_TITLE_LENGTH = 3

_EMOJI = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map
    "\U0001F1E0-\U0001F1FF"  # regional indicators (flags)
    "\U0001F900-\U0001F9FF"  # supplemental symbols & pictographs
    "\U0001FA70-\U0001FAFF"  # symbols & pictographs extended-A
    "\u2600-\u27BF"  # misc symbols, dingbats
    "\uFE0F\u200D"  # variation selector, zero-width joiner
    "]"
)
_SEPARATORS = re.compile(r"[|\\/]")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(raw: str) -> str:
    """Return *raw* with emoji and separators replaced and whitespace collapsed."""
    text = _EMOJI.sub(" ", raw)
    text = _SEPARATORS.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def ensure_classifiable(cleaned: str) -> str:
    """Return *cleaned* unchanged, or raise ``InputTooShort``."""
    if len(cleaned) < MIN_TITLE_LENGTH:
        raise InputTooShort(
            f"cleaned title has {len(cleaned)} chars, need {MIN_TITLE_LENGTH}"
        )
    return cleaned
