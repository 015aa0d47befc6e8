import logging

import streamlit as st

from src import ui
from src.config import RateLimitConfig
from src.constants import CATEGORIES
from src.model_router import BriefingFetchError, QuotaExceededError, fetch_briefing
from src.quota_tracker import QuotaGovernor
from src.storage import JsonFileStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="India AI Radar", page_icon=":satellite:", layout="wide")
ui.init_page()

ui.render_page_header(
    "India AI Radar",
    subtitle="Grounded briefings on India's AI ecosystem, refreshed on demand",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@st.cache_resource(show_spinner=False)
def _governor() -> QuotaGovernor:
    # Config is read once per process.
    return QuotaGovernor(JsonFileStore(), RateLimitConfig.from_env())


def _cache_key(category: str) -> str:
    return f"_briefing_{category}"


def _load(category: str) -> None:
    try:
        with st.spinner(f"Scanning {CATEGORIES[category]['label'].lower()}..."):
            st.session_state[_cache_key(category)] = fetch_briefing(category, governor)
    except QuotaExceededError as e:
        st.warning(str(e))
    except BriefingFetchError as e:
        st.error(str(e))
    else:
        # Redraw so the sidebar quota reflects the call just charged.
        st.rerun()


# ---------------------------------------------------------------------------
# Quota
# ---------------------------------------------------------------------------

governor = _governor()
status = governor.check()
ui.render_quota_sidebar(status)

# ---------------------------------------------------------------------------
# Category tabs
# ---------------------------------------------------------------------------

keys = list(CATEGORIES.keys())
tabs = st.tabs([CATEGORIES[k]["label"] for k in keys])

for key, tab in zip(keys, tabs):
    with tab:
        st.caption(CATEGORIES[key]["description"])
        if st.button("Refresh briefing", key=f"refresh_{key}", type="primary", disabled=not status.allowed):
            _load(key)

        briefing = st.session_state.get(_cache_key(key))
        if briefing is None:
            st.info("No briefing loaded yet. Press Refresh to fetch one.")
            continue

        ui.render_stats(briefing.stats, placeholder=briefing.stats_fallback)

        left, right = st.columns([2, 1])
        with left:
            with ui.card("Briefing"):
                st.markdown(briefing.display_text)
        with right:
            with ui.card("Trend", "Last six months"):
                ui.render_trend_chart(briefing.series, placeholder=briefing.series_fallback)
            with ui.card("Sources", "Google Search grounding"):
                ui.render_sources(briefing.sources)
