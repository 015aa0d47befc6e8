from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional, Tuple

from src.constants import (
    FALLBACK_SERIES_LABELS,
    FALLBACK_SERIES_MAX,
    FALLBACK_SERIES_MIN,
    FALLBACK_STATS,
    SERIES_TAG,
    STATS_TAG,
)

logger = logging.getLogger(__name__)

_NON_NUMERIC_RE = re.compile(r"[^0-9.]")
_LEADING_FLOAT_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")


@dataclass(frozen=True)
class SeriesPoint:
    label: str
    value: float


@dataclass(frozen=True)
class KeyStat:
    label: str
    value: str
    trend: str = "up"


@dataclass(frozen=True)
class Source:
    uri: str
    title: str = ""


@dataclass(frozen=True)
class Briefing:
    display_text: str
    series: List[SeriesPoint]
    stats: List[KeyStat]
    sources: List[Source] = field(default_factory=list)
    series_fallback: bool = False
    stats_fallback: bool = False

    def with_sources(self, sources: List[Source]) -> "Briefing":
        return replace(self, sources=list(sources))


def _fence_re(tag: str) -> re.Pattern:
    return re.compile(r"```\s*" + re.escape(tag) + r"\s*([\s\S]*?)```", re.IGNORECASE)


_SERIES_RE = _fence_re(SERIES_TAG)
_STATS_RE = _fence_re(STATS_TAG)


def _data_rows(body: str) -> List[str]:
    rows = body.strip().split("\n")
    if rows and "label" in rows[0].lower():
        return rows[1:]
    return rows


def _split_row(row: str) -> Optional[Tuple[str, str]]:
    # Only the first comma separates; values such as "1,200" keep theirs.
    idx = row.find(",")
    if idx <= 0:
        return None
    return row[:idx].strip(), row[idx + 1:].strip()


def parse_numeric(raw: str) -> float:
    """Digits and dots only, then the longest leading number. 0 when nothing parses.

    >>> parse_numeric("$12.5M")
    12.5
    >>> parse_numeric("N/A")
    0.0
    """
    cleaned = _NON_NUMERIC_RE.sub("", raw or "")
    m = _LEADING_FLOAT_RE.match(cleaned)
    if not m:
        return 0.0
    return float(m.group(0))


def parse_series_block(body: str) -> List[SeriesPoint]:
    points: List[SeriesPoint] = []
    for row in _data_rows(body):
        parts = _split_row(row)
        if not parts:
            continue
        label, value_raw = parts
        if label:
            points.append(SeriesPoint(label=label, value=parse_numeric(value_raw)))
    return points


def parse_stats_block(body: str) -> List[KeyStat]:
    stats: List[KeyStat] = []
    for row in _data_rows(body):
        parts = _split_row(row)
        if not parts:
            continue
        label, value = parts
        # The model gives no direction signal; every parsed stat reads as "up".
        if label and value:
            stats.append(KeyStat(label=label, value=value, trend="up"))
    return stats


def fallback_series(rng: Optional[random.Random] = None) -> List[SeriesPoint]:
    r = rng or random
    return [
        SeriesPoint(label=m, value=float(r.randint(FALLBACK_SERIES_MIN, FALLBACK_SERIES_MAX)))
        for m in FALLBACK_SERIES_LABELS
    ]


def fallback_stats() -> List[KeyStat]:
    return [KeyStat(label=label, value=value, trend=trend) for label, value, trend in FALLBACK_STATS]


def extract_briefing(raw_text: str, rng: Optional[random.Random] = None) -> Briefing:
    """Split generated text into display markdown, a chart series and key stats.

    Never raises. Missing or empty data blocks are replaced with placeholder
    data and flagged through ``series_fallback`` / ``stats_fallback``.
    """
    text = raw_text or ""
    series: List[SeriesPoint] = []
    stats: List[KeyStat] = []

    m = _SERIES_RE.search(text)
    if m and m.group(1):
        series = parse_series_block(m.group(1))
        text = text.replace(m.group(0), "", 1)

    m = _STATS_RE.search(text)
    if m and m.group(1):
        stats = parse_stats_block(m.group(1))
        text = text.replace(m.group(0), "", 1)

    series_fallback = not series
    if series_fallback:
        logger.debug("No series rows parsed; using placeholder series")
        series = fallback_series(rng)
    stats_fallback = not stats
    if stats_fallback:
        logger.debug("No stats rows parsed; using placeholder stats")
        stats = fallback_stats()

    return Briefing(
        display_text=text.strip(),
        series=series,
        stats=stats,
        series_fallback=series_fallback,
        stats_fallback=stats_fallback,
    )


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _source_fields(item: Any) -> Tuple[Optional[str], str]:
    if isinstance(item, Source):
        return item.uri, item.title
    if isinstance(item, (tuple, list)):
        uri = item[0] if len(item) > 0 else None
        title = item[1] if len(item) > 1 else ""
        return uri, title or ""
    # Gemini grounding chunks carry the citation under .web
    web = _get(item, "web")
    holder = web if web is not None else item
    return _get(holder, "uri"), _get(holder, "title") or ""


def dedupe_sources(chunks: Iterable[Any]) -> List[Source]:
    """One source per uri, last title wins, first-seen order kept."""
    by_uri: dict = {}
    for item in chunks or []:
        uri, title = _source_fields(item)
        if not uri:
            continue
        by_uri[str(uri)] = str(title)
    return [Source(uri=uri, title=title) for uri, title in by_uri.items()]
