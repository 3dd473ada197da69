"""Idempotent startup seed and backfill routines.

Each routine checks a cheap signal first (a row count, an existing row)
and returns without side effects when the work has already been done.
"""

from spellclash.seeds.bad_words import find_bad_words, is_bad_word, seed_bad_words
from spellclash.seeds.kid_credentials import populate_kid_credentials
from spellclash.seeds.public_lists import seed_default_public_lists

__all__ = [
    "find_bad_words",
    "is_bad_word",
    "populate_kid_credentials",
    "seed_bad_words",
    "seed_default_public_lists",
]
