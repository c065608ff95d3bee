"""
core/slug.py -- Canonical tenant identifiers.

An institute's slug is the public path segment of its login portal
(/api/auth/login/institute/{slug}). The same normalization is applied when
deriving a new slug from an institute name and when comparing an incoming
path segment, so "Exam Adda!", "exam-adda" and "EXAMADDA" all address the
same tenant.
"""

import re

_SEPARATORS_RE = re.compile(r"[\s_-]+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def slug_normalize(value: str) -> str:
    """Lower-case, drop separator runs, and strip everything outside [a-z0-9].

    Idempotent: slug_normalize(slug_normalize(x)) == slug_normalize(x).
    May return "" when the input has no ASCII letters or digits.
    """
    lowered = value.lower()
    joined = _SEPARATORS_RE.sub("", lowered)
    return _NON_ALNUM_RE.sub("", joined)
