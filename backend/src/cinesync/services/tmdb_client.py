"""TMDb API client for resolving and fetching movie metadata."""

import logging
from typing import Any

import httpx

from cinesync.config import settings

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
BACKDROP_SIZES = {"medium": "w780", "large": "w1280"}
POSTER_SIZES = {"small": "w185", "medium": "w342", "large": "w500"}


class TMDbClient:
    """Client for The Movie Database (TMDb) API."""

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        client: httpx.AsyncClient,
        access_token: str | None = None,
        language: str | None = None,
    ) -> None:
        """
        Initialize TMDb client.

        Args:
            client: Shared HTTP client for the current sync attempt
            access_token: TMDb read access token (uses settings if not provided)
            language: Response language (uses settings if not provided)
        """
        self.client = client
        self.access_token = access_token or settings.tmdb_access_token
        self.language = language or settings.tmdb_language
        if not self.access_token:
            logger.warning("TMDb access token not configured")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.access_token}",
        }

    async def find_by_imdb_id(self, imdb_id: str) -> int | None:
        """
        Look up the TMDb id of a movie from its IMDb id.

        Args:
            imdb_id: IMDb identifier, e.g. "tt1234567"

        Returns:
            TMDb movie id, or None if not found or the request failed
        """
        if not self.access_token:
            logger.warning("Cannot query TMDb without access token")
            return None

        params = {"external_source": "imdb_id", "language": self.language}

        try:
            response = await self.client.get(
                f"{self.BASE_URL}/find/{imdb_id}",
                params=params,
                headers=self._headers(),
            )
            response.raise_for_status()
            data = response.json()

            results = data.get("movie_results", [])
            if not results:
                logger.info(f"No TMDb movie for IMDb id: {imdb_id}")
                return None

            return int(results[0]["id"])

        except Exception as e:
            logger.error(f"TMDb find error for IMDb id {imdb_id}: {e}")
            return None

    async def get_movie_details(self, tmdb_id: int) -> dict[str, Any] | None:
        """
        Get detailed movie information including credits and videos.

        Args:
            tmdb_id: TMDb movie ID

        Returns:
            Movie details or None if error
        """
        if not self.access_token:
            logger.warning("Cannot fetch TMDb details without access token")
            return None

        params = {
            "language": self.language,
            "append_to_response": "credits,videos",
        }

        try:
            response = await self.client.get(
                f"{self.BASE_URL}/movie/{tmdb_id}",
                params=params,
                headers=self._headers(),
            )
            response.raise_for_status()
            return response.json()

        except Exception as e:
            logger.error(f"TMDb details error for ID {tmdb_id}: {e}")
            return None

    def extract_directors(self, credits: dict[str, Any]) -> list[str]:
        """
        Extract the director from TMDb credits.

        Only the first crew member credited in the Directing department with
        the Director job is kept.

        Args:
            credits: TMDb credits data

        Returns:
            A one-element list, or an empty list if no director is credited
        """
        for person in credits.get("crew", []):
            department = (person.get("department") or "").lower()
            job = (person.get("job") or "").lower()
            if department == "directing" and job == "director" and person.get("name"):
                return [person["name"]]
        return []

    def extract_cast(self, credits: dict[str, Any], n: int = 5) -> list[str]:
        """
        Extract top-billed cast member names from TMDb credits.

        Args:
            credits: TMDb credits data
            n: Maximum number of cast members to return

        Returns:
            List of actor names (up to n)
        """
        cast = credits.get("cast", [])
        return [person["name"] for person in cast[:n] if person.get("name")]

    def extract_genres(self, movie_data: dict[str, Any]) -> list[str]:
        return [genre["name"] for genre in movie_data.get("genres", []) if genre.get("name")]

    def extract_trailers(self, videos: dict[str, Any]) -> list[dict[str, str]]:
        """
        Extract YouTube trailers from TMDb video results.

        Args:
            videos: TMDb "videos" block ({"results": [...]})

        Returns:
            List of {"name", "key"} dicts in TMDb order
        """
        trailers = []
        for video in videos.get("results", []):
            site = (video.get("site") or "").lower()
            kind = (video.get("type") or "").lower()
            if site == "youtube" and kind == "trailer" and video.get("key"):
                trailers.append({"name": video.get("name", ""), "key": video["key"]})
        return trailers

    def image_urls(self, path: str | None, sizes: dict[str, str]) -> dict[str, str] | None:
        """
        Expand a TMDb image path into sized URLs.

        Args:
            path: Image path fragment such as "/abc123.jpg"
            sizes: Mapping of names to TMDb size codes, e.g. {"small": "w185"}

        Returns:
            Mapping of names to URLs, or None when the movie has no such image
        """
        if not path:
            return None
        return {name: f"{IMAGE_BASE_URL}/{size}{path}" for name, size in sizes.items()}
