"""Unit tests for text and slug utilities."""

from cinesync.utils.text import collapse_whitespace, movie_slug, slugify, strip_accents


class TestStripAccents:
    def test_removes_french_accents(self) -> None:
        assert strip_accents("L'Été dernier à Noël") == "L'Ete dernier a Noel"

    def test_leaves_plain_ascii_unchanged(self) -> None:
        assert strip_accents("Dune") == "Dune"

    def test_handles_cedilla(self) -> None:
        assert strip_accents("Garçon") == "Garcon"


class TestSlugify:
    def test_lowercases_and_hyphenates(self) -> None:
        assert slugify("Le Petit Nicolas") == "le-petit-nicolas"

    def test_strips_accents(self) -> None:
        assert slugify("Éléphant") == "elephant"

    def test_collapses_punctuation_runs(self) -> None:
        assert slugify("Dune : Deuxième partie") == "dune-deuxieme-partie"

    def test_apostrophe_becomes_hyphen(self) -> None:
        assert slugify("Anatomie d'une chute") == "anatomie-d-une-chute"

    def test_strips_leading_and_trailing_separators(self) -> None:
        assert slugify("  ...Oppenheimer!  ") == "oppenheimer"

    def test_keeps_digits(self) -> None:
        assert slugify("2001: A Space Odyssey") == "2001-a-space-odyssey"

    def test_underscore_is_a_separator(self) -> None:
        assert slugify("title_123") == "title-123"

    def test_empty_string(self) -> None:
        assert slugify("") == ""


class TestMovieSlug:
    def test_appends_cinenews_id(self) -> None:
        assert movie_slug("L'Été dernier", "51234") == "l-ete-dernier-51234"

    def test_same_title_different_ids_gives_distinct_slugs(self) -> None:
        assert movie_slug("Nosferatu", "1") != movie_slug("Nosferatu", "2")

    def test_is_stable(self) -> None:
        assert movie_slug("Dune : Deuxième partie", "50987") == movie_slug(
            "Dune : Deuxième partie", "50987"
        )


class TestCollapseWhitespace:
    def test_collapses_newlines_and_spaces(self) -> None:
        assert collapse_whitespace("  Anne,\n   avocate\tbrillante ") == "Anne, avocate brillante"

    def test_empty_string(self) -> None:
        assert collapse_whitespace("   ") == ""
