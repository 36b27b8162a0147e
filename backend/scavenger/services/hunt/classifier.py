"""Adapter around the Azure AI Vision "analyze" endpoint.

The gateway never raises for gameplay purposes: an unconfigured service,
a transport error, a timeout or a garbled response all come back as a
no-match so a flaky dependency only costs the player one attempt.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import requests

ANALYZE_PATH = '/vision/v3.2/analyze'
DEFAULT_THRESHOLD = 0.6


@dataclass(frozen=True)
class ClassificationResult:
    matched: bool
    confidence: float = 0.0


NO_MATCH = ClassificationResult(False, 0.0)


def match_tags(tags: Iterable[dict], target_label: str, threshold: float = DEFAULT_THRESHOLD) -> ClassificationResult:
    """Return the first tag that is confident enough and names the target.

    A tag names the target when, case-insensitively, it equals the label,
    contains it, or is contained in it ("clip" hits "Paper Clip").
    """
    target = (target_label or '').strip().lower()
    if not target:
        return NO_MATCH
    for tag in tags or []:
        try:
            name = str(tag.get('name') or '').strip().lower()
            confidence = float(tag.get('confidence') or 0.0)
        except (AttributeError, TypeError, ValueError):
            continue
        if not name or confidence < threshold:
            continue
        if name == target or target in name or name in target:
            return ClassificationResult(True, confidence)
    return NO_MATCH


class ClassificationGateway:
    def __init__(self, endpoint: str = '', key: str = '', threshold: float = DEFAULT_THRESHOLD,
                 timeout: float = 10.0, session: Optional[requests.Session] = None,
                 logger: Optional[logging.Logger] = None):
        self.endpoint = (endpoint or '').rstrip('/')
        self.key = key or ''
        self.threshold = threshold
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config, logger=None):
        return cls(
            endpoint=config.get('AZURE_VISION_ENDPOINT', ''),
            key=config.get('AZURE_VISION_KEY', ''),
            threshold=float(config.get('VISION_MATCH_THRESHOLD', DEFAULT_THRESHOLD)),
            timeout=float(config.get('VISION_TIMEOUT_SEC', 10)),
            logger=logger,
        )

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self.key)

    def classify(self, image_bytes: bytes, target_label: str) -> ClassificationResult:
        if not self.configured:
            self.logger.error('[vision-error] Azure Vision not configured (endpoint/key missing)')
            return NO_MATCH

        try:
            res = self.session.post(
                f"{self.endpoint}{ANALYZE_PATH}",
                params={'visualFeatures': 'Tags'},
                headers={
                    'Ocp-Apim-Subscription-Key': self.key,
                    'Content-Type': 'application/octet-stream',
                },
                data=image_bytes,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self.logger.error(f"[vision-error] request failed: {exc}")
            return NO_MATCH

        if not res.ok:
            self.logger.error(f"[vision-error] HTTP {res.status_code}: {res.text[:200]}")
            return NO_MATCH

        try:
            tags = res.json().get('tags') or []
        except (ValueError, AttributeError) as exc:
            self.logger.error(f"[vision-error] unreadable response: {exc}")
            return NO_MATCH

        result = match_tags(tags, target_label, self.threshold)
        self.logger.info(
            f"[vision] label={target_label!r} matched={result.matched} confidence={result.confidence:.2f} tags={len(tags)}"
        )
        return result
