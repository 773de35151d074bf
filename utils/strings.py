"""String processing utilities for the preset browser.

Catalog and preset ordering follows the "natural" order a user expects from
a file browser: case-insensitive, with embedded numbers compared by value
("Pad 2" sorts before "Pad 10").
"""

from utils.patterns import DIGIT_RUN


def natural_key(s: str | None) -> tuple:
    """Return a sort key giving case-insensitive natural ordering.

    The string is split into alternating text and digit chunks. Digit chunks
    compare as integers, text chunks compare case-folded. Each chunk is
    tagged so a text chunk never has to be compared with an int; numbers
    sort before text, as they do in ASCII.

    Example:
        sorted(["Pad 10", "pad 2", "Bass"], key=natural_key)
        -> ["Bass", "pad 2", "Pad 10"]

    Args:
        s: String to build a key for. None sorts like "".

    Returns:
        Tuple usable as a sort key.
    """
    if not s:
        return ()
    key = []
    for i, chunk in enumerate(DIGIT_RUN.split(s)):
        if not chunk:
            continue
        if i % 2:
            key.append((0, int(chunk), ""))
        else:
            key.append((1, 0, chunk.casefold()))
    return tuple(key)


def natural_keys(*parts: str | None) -> tuple:
    """Natural sort key over several fields, compared left to right."""
    return tuple(natural_key(p) for p in parts)


def contains_casefold(haystack: str | None, needle: str) -> bool:
    """Case-insensitive substring test; *needle* must already be case-folded."""
    if not haystack:
        return False
    return needle in haystack.casefold()
