"""Client for the remote puzzle catalog: generates puzzle inputs and checks answers.

The calls are blocking (``requests``); async code runs them with
``run_in_threadpool`` and never while holding an attempt lock.
"""
import logging
from typing import Any

import requests

from arena.core.errors import InvalidStepError, NotFoundError, UpstreamCheckError

logger = logging.getLogger(__name__)

# Check endpoint suffix per puzzle step
STEP_PATHS = {
    1: "first",
    2: "second",
}

DEFAULT_TIMEOUT = 30.0


class AnswerChecker:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, url: str, params: dict) -> Any:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Catalog request to %s failed: %s", url, e)
            raise UpstreamCheckError(f"Catalog request failed: {e}") from e

        if response.status_code != 200:
            logger.error("Catalog request to %s answered %s", url, response.status_code)
            raise UpstreamCheckError(f"Catalog answered with status {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            logger.error("Catalog response from %s is not JSON: %s", url, e)
            raise UpstreamCheckError("Failed to decode catalog response") from e

    @staticmethod
    def _base_url(catalog_address: str) -> str:
        if not catalog_address:
            raise NotFoundError("Catalog has no address")
        return catalog_address.rstrip("/")

    def check(
        self,
        catalog_address: str,
        theme: str,
        puzzle_id: str,
        step: int,
        seed_id: str,
        answer: str,
    ) -> bool:
        """Ask the catalog whether ``answer`` solves ``step`` of the puzzle generated for ``seed_id``."""
        path = STEP_PATHS.get(step)
        if path is None:
            raise InvalidStepError(f"Invalid step {step}")

        data = self._get_json(
            f"{self._base_url(catalog_address)}/puzzle/check/{path}",
            params={
                "theme": theme,
                "puzzle": puzzle_id,
                "unique_id": seed_id,
                "solution": answer,
            },
        )

        matches = data.get("matches") if isinstance(data, dict) else None
        if not isinstance(matches, bool):
            raise UpstreamCheckError("Unexpected catalog response format")
        return matches

    def fetch_puzzle_input(self, catalog_address: str, theme: str, puzzle_id: str, seed_id: str) -> dict:
        """Fetch the puzzle input generated for ``seed_id``."""
        data = self._get_json(
            f"{self._base_url(catalog_address)}/puzzle/generate/input",
            params={
                "theme": theme,
                "puzzle": puzzle_id,
                "unique_id": seed_id,
            },
        )
        if not isinstance(data, dict):
            raise UpstreamCheckError("Unexpected catalog response format")
        return data
