"""
Controlled subject vocabulary for South African results documents.

Aliases are scanned in table order and the first one found wins, so the
order of SUBJECT_ALIASES is part of the parsing behaviour.
"""
import re
from types import MappingProxyType
from typing import Optional, Tuple

# (alias, canonical name)
SUBJECT_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("mathematics", "Mathematics"),
    ("math", "Mathematics"),
    ("maths", "Mathematics"),
    ("wiskunde", "Mathematics"),
    ("english", "English"),
    ("engels", "English"),
    ("afrikaans", "Afrikaans"),
    ("physical science", "Physical Science"),
    ("physics", "Physical Science"),
    ("physical sciences", "Physical Science"),
    ("life science", "Life Science"),
    ("life sciences", "Life Science"),
    ("biology", "Life Science"),
    ("geography", "Geography"),
    ("history", "History"),
    ("accounting", "Accounting"),
    ("economics", "Economics"),
    ("business studies", "Business Studies"),
    ("life orientation", "Life Orientation"),
    ("computer science", "Information Technology"),
    ("it", "Information Technology"),
    ("information technology", "Information Technology"),
    ("tourisme", "Tourism"),
    ("tourism", "Tourism"),
    ("consumer studies", "Consumer Studies"),
)

CANONICAL_NAMES = MappingProxyType(dict(SUBJECT_ALIASES))

# Narrower second chance when no alias is present in a line
SUBJECT_ROOT_RE = re.compile(
    r'(mathematics|english|science|geography|history|accounting|economics|business|afrikaans)',
    re.IGNORECASE
)


def find_alias(text: str) -> Optional[str]:
    """Return the first alias (in table order) contained in ``text``."""
    for alias, _ in SUBJECT_ALIASES:
        if alias in text:
            return alias
    return None


def canonical_name(subject: str) -> str:
    """
    Map an alias to its canonical subject label.

    Words outside the vocabulary are capitalised (``"science"`` -> ``"Science"``).
    """
    lowered = subject.lower()
    if lowered in CANONICAL_NAMES:
        return CANONICAL_NAMES[lowered]
    return subject[:1].upper() + subject[1:].lower()
