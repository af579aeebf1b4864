"""Slug derivation and LIKE-pattern helpers."""

from __future__ import annotations

import re
import string

from usageaudit.errors import MalformedPath

_UNSAFE_RUN = re.compile(r"[^a-z0-9]+")
_SEPARATORS = re.compile(r"[\\/]+")

LIKE_ESCAPE = "\\"


def sanitize_key(raw: str) -> str:
    """Lowercase *raw* and collapse every non-alphanumeric run into one hyphen.

    Leading and trailing hyphens are dropped, so ``"My Plugin!"`` becomes
    ``"my-plugin"``.
    """
    return _UNSAFE_RUN.sub("-", raw.lower()).strip("-")


def derive_slug(install_path: str) -> str:
    """Return the slug for an extension's *install_path*.

    A path with a separator reduces to its top-level directory
    (``"akismet/akismet.php"`` -> ``"akismet"``); a bare file keeps its
    whole name, dots included (``"hello.php"`` -> ``"hello-php"``).

    Raises :class:`MalformedPath` when nothing usable is left.
    """
    if not install_path or not install_path.strip():
        raise MalformedPath(install_path)

    parts = [p for p in _SEPARATORS.split(install_path.strip()) if p]
    if not parts:
        raise MalformedPath(install_path, "no path components")

    slug = sanitize_key(parts[0])
    if not slug:
        raise MalformedPath(install_path, "no alphanumeric characters")
    return slug


# ---------------------------------------------------------------------------
# Pattern helpers
# ---------------------------------------------------------------------------


def esc_like(text: str) -> str:
    """Escape SQL ``LIKE`` metacharacters so *text* matches literally."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_pattern(needle: str) -> str:
    """``LIKE`` pattern matching *needle* anywhere (``%needle%``)."""
    return f"%{esc_like(needle)}%"


def prefix_pattern(prefix: str) -> str:
    """``LIKE`` pattern matching values that start with *prefix*."""
    return f"{esc_like(prefix)}%"


_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def ascii_lower(text: str) -> str:
    """Lowercase ASCII letters only, as SQLite's ``LIKE`` compares them."""
    return text.translate(_ASCII_LOWER)


def contains_slug(text: str | None, needle: str) -> bool:
    """Substring test, the in-memory twin of ``LIKE %x%``.

    Only ASCII letters ignore case, so ``"Ä"`` and ``"ä"`` differ here too.
    """
    if not text:
        return False
    return ascii_lower(needle) in ascii_lower(text)
