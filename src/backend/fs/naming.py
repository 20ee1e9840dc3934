"""
Export file naming conventions.

When the requested display name is already taken in the public folder, the
exporter retries with numbered variants:

    report.pdf -> report (2).pdf -> report (3).pdf -> ...
    README     -> README (2)     -> README (3)     -> ...

The unmodified name is conceptually attempt 1, so numbering starts at 2.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple


# First numbered variant tried after the original name collides
INITIAL_RENAME_COUNT = 2

# Upper bound on candidate names (original name included)
DEFAULT_MAX_RENAME_ATTEMPTS = 1000


class SplitName(NamedTuple):
    """A display name split at its last dot."""
    stem: str
    extension: str     # Without dot, empty if the name has none


def split_name(name: str) -> SplitName:
    """
    Split a display name into stem and extension at the last '.'.

    Args:
        name: The display name (no directory part).

    Returns:
        SplitName; if the name contains no '.', extension is empty and the
        whole name is the stem.
    """
    ext_pos = name.rfind('.')
    if ext_pos < 0:
        return SplitName(stem=name, extension="")
    return SplitName(stem=name[:ext_pos], extension=name[ext_pos + 1:])


def sanitize_display_name(name: str) -> str:
    """
    Make a remote display name safe to use inside the public folder.

    Path separators and NUL are replaced with '_'; names that would refer to
    the folder itself ("", ".", "..") become "_".
    """
    cleaned = name.replace('/', '_').replace('\\', '_').replace('\x00', '_').strip()
    if cleaned in ("", ".", ".."):
        return "_"
    return cleaned


def resolve_collision_name(base_name: str, attempt: int) -> str:
    """
    Generate the candidate name for a collision attempt.

    Args:
        base_name: The originally requested display name.
        attempt: Attempt number, starting at INITIAL_RENAME_COUNT.

    Returns:
        "{stem} ({attempt}).{extension}", or "{stem} ({attempt})" when the
        base name has no extension.

    Raises:
        ValueError: If attempt is below INITIAL_RENAME_COUNT.
    """
    if attempt < INITIAL_RENAME_COUNT:
        raise ValueError(
            f"attempt must be >= {INITIAL_RENAME_COUNT}, got {attempt}"
        )

    if '.' not in base_name:
        return f"{base_name} ({attempt})"

    parts = split_name(base_name)
    return f"{parts.stem} ({attempt}).{parts.extension}"


def candidate_names(
    base_name: str,
    max_attempts: int = DEFAULT_MAX_RENAME_ATTEMPTS,
) -> Iterator[tuple[int, str]]:
    """
    Yield (attempt, name) pairs to try when reserving a destination.

    The first pair is (1, base_name); the rest come from
    resolve_collision_name() for attempts 2..max_attempts.
    """
    if max_attempts < 1:
        return
    yield 1, base_name
    for attempt in range(INITIAL_RENAME_COUNT, max_attempts + 1):
        yield attempt, resolve_collision_name(base_name, attempt)
