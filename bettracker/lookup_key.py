"""
bettracker/lookup_key.py — Lookup-Key Normalizer
=================================================
The single place where lookup keys are derived and compared.

Every registry key, alias comparison, queue item id and resolver lookup goes
through normalize(). No other module lowercases, trims or collapses
whitespace on its own.

Steps, in order:
  1. Unicode NFKC (composed/decomposed accents, ligatures, full-width forms)
  2. Smart quotes, dashes and non-breaking spaces → plain ASCII
  3. Trim
  4. Collapse internal whitespace runs to one space
  5. Lowercase

Accents and punctuation are preserved on purpose: "O'Neal" and "ONeal" must
stay distinct keys, as must "José" and "Jose".

DO NOT add registry or resolver imports to this file.
"""

import re
import unicodedata
from typing import Optional

_PUNCTUATION_MAP = str.maketrans({
    # single quotes / primes → apostrophe
    "\u2018": "'",
    "\u2019": "'",
    "\u201b": "'",
    "\u2032": "'",
    # double quotes → ASCII double quote
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    # figure dash, en dash, em dash, horizontal bar, minus sign → hyphen
    "\u2012": "-",
    "\u2013": "-",
    "\u2014": "-",
    "\u2015": "-",
    "\u2212": "-",
    # no-break, narrow no-break, figure and thin spaces → space
    "\u00a0": " ",
    "\u202f": " ",
    "\u2007": " ",
    "\u2009": " ",
})

_WHITESPACE_RE = re.compile(r"\s+")

SCOPE_SEPARATOR = "::"


def normalize(text: Optional[str]) -> str:
    """
    Canonicalize text into a lookup key.

    None and empty input yield "". Idempotent: normalize(normalize(x)) == normalize(x).

    >>> normalize("  Phoenix  Suns ")
    'phoenix suns'
    >>> normalize("D’Angelo Russell")
    "d'angelo russell"
    >>> normalize("LA Clippers — Team Total")
    'la clippers - team total'
    >>> normalize(None)
    ''
    """
    if not text:
        return ""
    result = unicodedata.normalize("NFKC", str(text))
    result = result.translate(_PUNCTUATION_MAP)
    result = _WHITESPACE_RE.sub(" ", result.strip())
    return result.lower()


# Name used by the import side and the queue id scheme.
to_lookup_key = normalize


def scoped_key(sport: Optional[str], key: str) -> str:
    """
    Sport-scoped composite key: "{sport}::{key}".

    The key part is expected to be normalized already; sport is used as given.

    >>> scoped_key("NBA", "lebron james")
    'NBA::lebron james'
    """
    return f"{sport or ''}{SCOPE_SEPARATOR}{key}"


def dedupe_by_key(values) -> tuple:
    """
    Drop empty spellings and later duplicates that share a lookup key.

    The first spelling of each key is kept, trimmed, in input order.

    >>> dedupe_by_key(["Suns", "suns ", "", "PHX", "Suns"])
    ('Suns', 'PHX')
    """
    seen: set[str] = set()
    kept = []
    for value in values or ():
        key = normalize(value)
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(str(value).strip())
    return tuple(kept)
