from __future__ import annotations

import re

_QUOTES = re.compile(r"['\"]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


# Search key for item names: lower-case, quotes dropped, every other
# non-alphanumeric run collapsed to one space. Applying it twice is a no-op.
def name_key(name: str) -> str:
    s = str(name or "").strip().lower()
    s = _QUOTES.sub("", s)
    s = _NON_ALNUM.sub(" ", s)
    return s.strip()
