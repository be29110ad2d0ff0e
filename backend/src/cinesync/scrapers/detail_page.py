"""Parsing of cinenews movie detail pages."""

import re

from bs4 import BeautifulSoup, Tag

from cinesync.scrapers.errors import ParseError
from cinesync.scrapers.models import MetadataSource, NormalizedMovie
from cinesync.utils.dates import parse_iso_date
from cinesync.utils.text import collapse_whitespace, movie_slug

CINENEWS_IMAGE_URL = "https://www.cinenews.be/image"

BACKDROP_SIZES = {"medium": "x1386x780", "large": "x2275x1280"}
POSTER_SIZES = {"small": "s185", "medium": "s342", "large": "s500"}

MAX_ACTORS = 5


def parse_ids(html: str) -> tuple[str | None, str | None]:
    """
    Read the cinenews id and the IMDb id embedded in a detail page.

    Returns:
        (native_id, imdb_id); either may be None when the attribute is absent
    """
    soup = BeautifulSoup(html, "html.parser")
    return _attr(soup, "data-tbl-id"), _attr(soup, "data-vod-imdb")


def _attr(soup: BeautifulSoup, name: str) -> str | None:
    element = soup.select_one(f"[{name}]")
    if element is None:
        return None
    value = str(element.get(name, "")).strip()
    return value or None


def parse_movie(html: str, native_id: str) -> NormalizedMovie:
    """
    Build a NormalizedMovie from the detail page markup alone.

    Used for titles that could not be resolved on TMDb. The site offers no
    trailers, so videos stay empty.

    Raises:
        ParseError: if the page has no detail header or no title
    """
    soup = BeautifulSoup(html, "html.parser")

    header = soup.select_one(".detail-header")
    if header is None:
        raise ParseError(f"No detail header on page for cinenews id {native_id}")

    title_el = header.select_one(".detail-header-title h1")
    title = collapse_whitespace(title_el.get_text()) if title_el else ""
    if not title:
        raise ParseError(f"No title on page for cinenews id {native_id}")

    release_el = header.select_one(".detail-header-more [itemprop='datePublished']")
    overview_el = header.select_one(".detail-header-description")
    backdrop_fragment = _image_fragment(
        soup.select_one("[data-on-tab='photos'] a[data-bg]"), "data-bg"
    )
    poster_fragment = _image_fragment(header.select_one(".detail-header-poster img"), "data-src")

    return NormalizedMovie(
        slug=movie_slug(title, native_id),
        title=title,
        source=MetadataSource.CINENEWS,
        release_date=parse_iso_date(release_el.get_text()) if release_el else None,
        runtime=_parse_runtime(header),
        genres=_texts(header.select(".detail-header-more b:-soup-contains('Genre') ~ a.c")),
        directors=_texts(header.select(".detail-header-more [itemprop='director']")),
        actors=_texts(soup.select("[data-on-tab='casting'] h4 [itemprop='url']"))[:MAX_ACTORS],
        overview=collapse_whitespace(overview_el.get_text()) if overview_el else None,
        backdrop=_image_set(backdrop_fragment, BACKDROP_SIZES),
        poster=_image_set(poster_fragment, POSTER_SIZES),
        videos=[],
    )


def _texts(elements: list[Tag]) -> list[str]:
    texts = [collapse_whitespace(el.get_text()) for el in elements]
    return [t for t in texts if t]


def _parse_runtime(header: Tag) -> int | None:
    """Extract the runtime from the "112 minutes" entry of the info list."""
    span = header.select_one(".list-dot span:-soup-contains('minutes')")
    if span is None:
        return None
    match = re.search(r"(\d+)\s*minutes", span.get_text())
    return int(match.group(1)) if match else None


def _image_fragment(element: Tag | None, attribute: str) -> str | None:
    """
    Return the image key that follows "/q" in a cinenews image URL.

    "https://www.cinenews.be/image/x400x225/q6a1f2.jpg" → "6a1f2.jpg"
    """
    if element is None:
        return None
    url = str(element.get(attribute, "")).strip()
    if "/q" not in url:
        return None
    fragment = url.split("/q", 1)[1]
    return fragment or None


def _image_set(fragment: str | None, sizes: dict[str, str]) -> dict[str, str] | None:
    if not fragment:
        return None
    return {name: f"{CINENEWS_IMAGE_URL}/{size}/q{fragment}" for name, size in sizes.items()}
