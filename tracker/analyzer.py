"""
Client for the external analyze-screenshot function.

The function receives a public image URL and returns the placement and kill
count read from a match-result screenshot. Either value is null when the
model could not read it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .models import MAX_COLUMN_INT

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    def __init__(self, image_url: str, reason: str = None):
        self.image_url = image_url
        self.reason = reason or f"Screenshot analysis failed for {image_url}"
        super().__init__(self.reason)


@dataclass
class AnalysisResult:
    placement: Optional[int] = None
    kills: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return self.placement is not None and self.kills is not None


def _as_int(value, minimum: int, maximum: int = MAX_COLUMN_INT) -> Optional[int]:
    # bool is an int subclass; reject it along with floats and strings
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < minimum or value > maximum:
        return None
    return value


class ScreenshotAnalyzer:
    """Invokes the analyze-screenshot function over HTTP. No retries."""

    def __init__(self, url: str, api_key: str = None, timeout: int = 60):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'ScreenshotAnalyzer':
        return cls(
            url=config.get('ANALYZER_URL'),
            api_key=config.get('ANALYZER_API_KEY') or None,
            timeout=config.get('ANALYZER_TIMEOUT', 60)
        )

    def analyze(self, image_url: str) -> AnalysisResult:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"

        try:
            resp = requests.post(
                self.url,
                json={'imageUrl': image_url},
                headers=headers,
                timeout=self.timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except ValueError as e:
            # requests' JSONDecodeError is also a RequestException
            raise AnalysisError(image_url, "Analyzer returned invalid JSON") from e
        except requests.exceptions.RequestException as e:
            raise AnalysisError(image_url, f"Analyzer request failed: {e}") from e

        if not isinstance(data, dict):
            raise AnalysisError(image_url, "Analyzer returned an unexpected payload")

        result = AnalysisResult(
            placement=_as_int(data.get('placement'), minimum=1),
            kills=_as_int(data.get('kills'), minimum=0)
        )
        logger.debug(f"Analyzed {image_url}: placement={result.placement} kills={result.kills}")
        return result
