from __future__ import annotations

from contextlib import contextmanager
from html import escape
from typing import Iterator, List, Optional, Tuple

import altair as alt
import pandas as pd
import streamlit as st

from src.briefing import KeyStat, SeriesPoint, Source
from src.quota_tracker import QuotaStatus

_BADGE_CLASS = {
    "info": "rd-badge-info",
    "success": "rd-badge-success",
    "warning": "rd-badge-warning",
    "danger": "rd-badge-danger",
}
_TREND_ARROW = {"up": "▲", "down": "▼", "neutral": "■"}


def _inject_css() -> None:
    st.markdown(
        """
<style>
:root {
  --rd-app-bg: #F5F7FA;
  --rd-card-bg: #FFFFFF;
  --rd-text-primary: #0F172A;
  --rd-text-secondary: #64748B;
  --rd-border: #E5E7EB;
  --rd-accent: #EA580C;
  --rd-success: #16A34A;
  --rd-danger: #DC2626;
}

.stApp {
  background: var(--rd-app-bg);
  color: var(--rd-text-primary);
}

.rd-page-title {
  margin: 0;
  font-size: 2rem;
  line-height: 1.2;
  font-weight: 700;
  color: var(--rd-text-primary);
}

.rd-page-subtitle {
  margin-top: 0.35rem;
  margin-bottom: 0.75rem;
  font-size: 0.9rem;
  color: var(--rd-text-secondary);
}

.rd-divider {
  border-top: 1px solid var(--rd-border);
  margin: 0.4rem 0 1rem 0;
}

.rd-card-title {
  margin: 0;
  font-size: 1.02rem;
  font-weight: 600;
  color: var(--rd-text-primary);
}

.rd-card-help {
  margin-top: 0.2rem;
  margin-bottom: 0.7rem;
  font-size: 0.85rem;
  color: var(--rd-text-secondary);
}

.rd-kpi-card {
  border: 1px solid #e2e8f0;
  border-radius: 8px;
  background: #ffffff;
  box-shadow: 0 3px 8px rgba(15, 23, 42, 0.05);
  padding: 0.75rem 0.85rem;
  min-height: 86px;
  margin-bottom: 0.6rem;
}

.rd-kpi-label {
  font-size: 0.75rem;
  color: #475569;
  letter-spacing: 0.06em;
  text-transform: uppercase;
  margin-bottom: 0.2rem;
  font-weight: 600;
}

.rd-kpi-value {
  font-size: 1.75rem;
  font-weight: 700;
  color: #1e293b;
  line-height: 1.2;
}

.rd-kpi-caption {
  font-size: 0.78rem;
  color: #64748b;
  margin-top: 0.2rem;
}

.rd-trend-up { color: var(--rd-success); }
.rd-trend-down { color: var(--rd-danger); }
.rd-trend-neutral { color: var(--rd-text-secondary); }

.rd-badge {
  display: inline-block;
  border-radius: 999px;
  padding: 0.1rem 0.5rem;
  font-size: 0.76rem;
  font-weight: 600;
  border: 1px solid transparent;
}

.rd-badge-info { background: #DBEAFE; color: #1D4ED8; border-color: #BFDBFE; }
.rd-badge-success { background: #DCFCE7; color: #166534; border-color: #BBF7D0; }
.rd-badge-warning { background: #FEF3C7; color: #92400E; border-color: #FDE68A; }
.rd-badge-danger { background: #FEE2E2; color: #991B1B; border-color: #FECACA; }
</style>
        """,
        unsafe_allow_html=True,
    )


def init_page() -> None:
    _inject_css()


def render_page_header(title: str, subtitle: Optional[str] = None) -> None:
    st.markdown(f'<h1 class="rd-page-title">{escape(title)}</h1>', unsafe_allow_html=True)
    if subtitle:
        st.markdown(f'<div class="rd-page-subtitle">{escape(subtitle)}</div>', unsafe_allow_html=True)
    st.markdown('<div class="rd-divider"></div>', unsafe_allow_html=True)


@contextmanager
def card(title: str, help_text: Optional[str] = None) -> Iterator[None]:
    with st.container(border=True):
        st.markdown(f'<div class="rd-card-title">{escape(title)}</div>', unsafe_allow_html=True)
        if help_text:
            st.markdown(f'<div class="rd-card-help">{escape(help_text)}</div>', unsafe_allow_html=True)
        yield


def status_badge(label: str, kind: str = "info") -> None:
    cls = _BADGE_CLASS.get(kind, _BADGE_CLASS["info"])
    st.markdown(f'<span class="rd-badge {cls}">{escape(str(label))}</span>', unsafe_allow_html=True)


def quota_badge(status: QuotaStatus) -> Tuple[str, str]:
    """(label, badge kind) summarising a quota status."""
    if status.limited_by == "daily":
        return "Daily limit reached", "danger"
    if status.limited_by == "minute":
        return "Slow down: per-minute limit", "danger"
    if status.is_warning:
        return f"{status.remaining} calls left today", "warning"
    return f"{status.remaining} calls left today", "success"


def render_quota_sidebar(status: QuotaStatus) -> None:
    with st.sidebar:
        st.markdown("### API quota")
        label, kind = quota_badge(status)
        status_badge(label, kind)
        pct = min(status.usage_percentage / 100, 1.0)
        st.progress(pct, text=f"{status.daily_count}/{status.daily_limit} today")
        st.caption(f"{status.minute_remaining} calls left this minute")
        st.caption(f"Resets at {status.reset_at:%Y-%m-%d %H:%M %Z}".strip())


def kpi_card(label: str, value: object, trend: Optional[str] = None) -> None:
    parts = [
        '<div class="rd-kpi-card">',
        f'<div class="rd-kpi-label">{escape(str(label))}</div>',
        f'<div class="rd-kpi-value">{escape(str(value))}</div>',
    ]
    if trend in _TREND_ARROW:
        parts.append(f'<div class="rd-kpi-caption rd-trend-{trend}">{_TREND_ARROW[trend]} {trend}</div>')
    parts.append("</div>")
    st.markdown("".join(parts), unsafe_allow_html=True)


def series_frame(series: List[SeriesPoint]) -> pd.DataFrame:
    df = pd.DataFrame([{"label": p.label, "value": p.value} for p in series], columns=["label", "value"])
    df["order"] = range(len(df))
    return df


def render_trend_chart(series: List[SeriesPoint], placeholder: bool = False) -> None:
    df = series_frame(series)
    chart = (
        alt.Chart(df)
        .mark_area(line=True, opacity=0.35)
        .encode(
            x=alt.X("label:N", sort=df["label"].tolist(), title=None),
            y=alt.Y("value:Q", title="Activity"),
            tooltip=["label", "value"],
        )
        .properties(height=260)
    )
    st.altair_chart(chart, use_container_width=True)
    if placeholder:
        st.caption("Illustrative data: the model did not return a trend table.")


def render_stats(stats: List[KeyStat], placeholder: bool = False) -> None:
    cols = st.columns(max(len(stats), 1))
    for col, stat in zip(cols, stats):
        with col:
            kpi_card(stat.label, stat.value, trend=stat.trend)
    if placeholder:
        st.caption("Illustrative figures: the model did not return key statistics.")


def render_sources(sources: List[Source]) -> None:
    if not sources:
        st.caption("No grounding sources returned.")
        return
    for src in sources:
        title = src.title or src.uri
        st.markdown(f"- [{title}]({src.uri})")
