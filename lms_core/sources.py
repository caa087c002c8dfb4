from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import requests


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
LMS_FILENAME = "LMS.csv"
STORYLANE_FILENAME = "storylane.csv"

LMS_FEED_ENV = "LMS_FEED_URL"
STORYLANE_FEED_ENV = "STORYLANE_FEED_URL"

REQUEST_TIMEOUT = 30
# Remote feeds are re-fetched at most this often by the cached loaders.
REMOTE_REFRESH_SECONDS = 300


class FeedLoadError(RuntimeError):
    """A feed could not be fetched; the whole load is aborted."""

    def __init__(self, feed: str, location: str, reason: str) -> None:
        super().__init__(f"Failed to load {feed} feed from {location}: {reason}")
        self.feed = feed
        self.location = location


@dataclass(frozen=True)
class FeedSources:
    lms: str
    storylane: str


def default_sources() -> FeedSources:
    return FeedSources(
        lms=os.environ.get(LMS_FEED_ENV) or str(DATA_DIR / LMS_FILENAME),
        storylane=os.environ.get(STORYLANE_FEED_ENV) or str(DATA_DIR / STORYLANE_FILENAME),
    )


def is_remote(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


def source_signature(sources: FeedSources, *, now: Optional[float] = None) -> Tuple[Tuple[str, float], ...]:
    """Cache key for a pair of feeds.

    Local files contribute their mtime. URLs contribute the current ``REMOTE_REFRESH_SECONDS``
    time bucket, so cached snapshots of remote feeds expire and are fetched again.
    """
    bucket = float(int((time.time() if now is None else now) // REMOTE_REFRESH_SECONDS))
    sig = []
    for location in (sources.lms, sources.storylane):
        if is_remote(location):
            sig.append((location, bucket))
            continue
        path = Path(location)
        sig.append((location, path.stat().st_mtime if path.exists() else -1.0))
    return tuple(sig)


def fetch_feed_text(location: str, *, feed: str = "feed") -> str:
    if is_remote(location):
        try:
            resp = requests.get(location, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FeedLoadError(feed, location, str(exc)) from exc
        # Servers often omit the charset on text/csv.
        if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
            resp.encoding = "utf-8"
        text = resp.text
    else:
        try:
            text = Path(location).read_text(encoding="utf-8-sig")
        except OSError as exc:
            raise FeedLoadError(feed, location, str(exc)) from exc
    logger.info("Fetched %s feed from %s (%d bytes)", feed, location, len(text))
    return text


def fetch_feeds(sources: FeedSources) -> Tuple[str, str]:
    """Fetch both feeds concurrently; both must succeed before anything is parsed."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        lms_future = executor.submit(fetch_feed_text, sources.lms, feed="LMS")
        storylane_future = executor.submit(fetch_feed_text, sources.storylane, feed="Storylane")
        # result() re-raises the first FeedLoadError; the executor still joins the other fetch.
        lms_text = lms_future.result()
        storylane_text = storylane_future.result()
    return lms_text, storylane_text
