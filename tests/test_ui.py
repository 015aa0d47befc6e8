from datetime import datetime, timezone

import pytest

from src.briefing import SeriesPoint
from src.quota_tracker import QuotaStatus
from src import ui
from src.ui import quota_badge, series_frame


def _status(daily_count=0, remaining=50, minute_remaining=10, is_warning=False):
    return QuotaStatus(
        allowed=remaining > 0 and minute_remaining > 0,
        daily_count=daily_count,
        daily_limit=50,
        remaining=remaining,
        minute_remaining=minute_remaining,
        is_warning=is_warning,
        reset_at=datetime(2026, 3, 11, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize(
    "status,kind",
    [
        (_status(), "success"),
        (_status(daily_count=42, remaining=8, is_warning=True), "warning"),
        (_status(daily_count=50, remaining=0, is_warning=True), "danger"),
        (_status(minute_remaining=0), "danger"),
    ],
)
def test_quota_badge_kind(status, kind):
    assert quota_badge(status)[1] == kind


def test_quota_badge_prefers_daily_message():
    label, _ = quota_badge(_status(daily_count=50, remaining=0, minute_remaining=0))
    assert label == "Daily limit reached"


def test_series_frame_keeps_order():
    df = series_frame([SeriesPoint("Sep", 10), SeriesPoint("Oct", 15)])
    assert df["label"].tolist() == ["Sep", "Oct"]
    assert df["value"].tolist() == [10, 15]
    assert df["order"].tolist() == [0, 1]


def test_series_frame_empty():
    df = series_frame([])
    assert list(df.columns) == ["label", "value", "order"]
    assert df.empty


@pytest.fixture
def rendered(monkeypatch):
    out = []
    monkeypatch.setattr("src.ui.st.markdown", lambda body, **kwargs: out.append(body))
    return out


def test_status_badge_markup(rendered):
    ui.status_badge("3 calls left today", "warning")
    assert rendered == ['<span class="rd-badge rd-badge-warning">3 calls left today</span>']


def test_status_badge_unknown_kind_falls_back_to_info(rendered):
    ui.status_badge("x", "bogus")
    assert "rd-badge-info" in rendered[0]


def test_kpi_card_shows_trend_arrow(rendered):
    ui.kpi_card("Funding", "$5M", trend="down")
    assert "rd-trend-down" in rendered[0]
    assert "▼ down" in rendered[0]


def test_kpi_card_escapes_values(rendered):
    ui.kpi_card("<b>", "<script>")
    assert "&lt;script&gt;" in rendered[0]
    assert "rd-trend" not in rendered[0]
