"""Text utilities for slugs and scraped strings."""

import re
import unicodedata


def strip_accents(text: str) -> str:
    """
    Remove diacritics by decomposing to NFD and dropping combining marks.

    Examples:
        "L'Été dernier" → "L'Ete dernier"
        "Blanche-Neige" → "Blanche-Neige"
    """
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(text: str) -> str:
    """
    Convert text to a URL-safe slug.

    Every run of characters outside [a-z0-9] becomes a single hyphen, so
    "Mission: Impossible" and "Mission - Impossible" share a slug.

    Args:
        text: Text to slugify

    Returns:
        Lowercase slug with hyphens
    """
    text = strip_accents(text.strip()).lower()

    # Replace anything that is not a lowercase letter or digit with hyphens
    text = re.sub(r"[^a-z0-9]+", "-", text)

    # Strip leading/trailing hyphens
    return text.strip("-")


def movie_slug(title: str, native_id: str) -> str:
    """
    Build the catalog slug for a movie.

    The cinenews id is appended so two different films sharing a title get
    distinct slugs, while re-running a sync yields the same slug.

    Examples:
        ("L'Été dernier", "51234") → "l-ete-dernier-51234"
    """
    return slugify(f"{title}_{native_id}")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) into single spaces."""
    return re.sub(r"\s+", " ", text).strip()
