from __future__ import annotations

# ---------------------------------------------------------------------------
# Rate limits. Gemini free tier allows far more (roughly 1500/day, 15/min);
# the defaults stay well below so the dashboard never burns the key.
# Override with RADAR_DAILY_LIMIT / RADAR_PER_MINUTE_LIMIT /
# RADAR_WARNING_THRESHOLD.
# ---------------------------------------------------------------------------
DEFAULT_DAILY_LIMIT = 50
DEFAULT_PER_MINUTE_LIMIT = 10
DEFAULT_WARNING_THRESHOLD = 0.8

MINUTE_WINDOW_MS = 60_000

STORAGE_KEY_DAILY_COUNT = "india_radar_daily_api_count"
STORAGE_KEY_LAST_RESET = "india_radar_last_reset_date"
STORAGE_KEY_MINUTE_CALLS = "india_radar_minute_calls"
STORAGE_KEYS = (STORAGE_KEY_DAILY_COUNT, STORAGE_KEY_LAST_RESET, STORAGE_KEY_MINUTE_CALLS)

DEFAULT_MODEL = "gemini-2.5-flash"
EMPTY_RESPONSE_TEXT = "No information available at the moment."

# ---------------------------------------------------------------------------
# Briefing categories. Order is the tab order in the dashboard.
# ---------------------------------------------------------------------------
CATEGORIES = {
    "latest": {
        "label": "Latest News",
        "description": "Launches, updates and government initiatives",
        "prompt": (
            "Focus on the absolute latest AI product launches, major updates, and breaking news "
            "in India from the last 30 days. Highlight government initiatives (IndiaAI) and "
            "corporate moves."
        ),
    },
    "startups": {
        "label": "Startups",
        "description": "Funding rounds and new products",
        "prompt": (
            "List the most promising Indian AI startups that have launched products or raised "
            "funding in the last 60 days. Describe their specific AI value proposition."
        ),
    },
    "enterprise": {
        "label": "Enterprise",
        "description": "IT services and conglomerates",
        "prompt": (
            "How are major Indian IT services companies (TCS, Infosys, Wipro, HCL) and large "
            "conglomerates implementing or launching new AI platforms recently?"
        ),
    },
    "research": {
        "label": "Research",
        "description": "IITs, IIITs and corporate labs",
        "prompt": (
            "What are the latest AI research breakthroughs or academic initiatives coming out of "
            "Indian institutions (IITs, IIITs) or corporate research labs in India recently?"
        ),
    },
}

# Appended to every category prompt. The tags must match the fence tags the
# extractor looks for (csv / stats).
FORMAT_INSTRUCTIONS = """
Format the main response in clean Markdown. Use '##' for main section headers. Use bullet points. Bold specific company/product names. Focus strictly on India.

CRITICAL: At the very end of your response, you MUST provide two specific CSV blocks for data visualization.

Block 1: A CSV representing a trend over the last 6 months related to this topic (e.g., Funding Amount, Number of Launches, or Activity Level).
Wrap it in ```csv
Label,Value
Sep,10
Oct,15
...
```

Block 2: A CSV representing 3 key statistics extracted from the news (e.g., Total Funding, New Startups, Patents Filed).
Wrap it in ```stats
Label,Value
Total Funding,$500M+
New Startups,12
...
```
"""

# ---------------------------------------------------------------------------
# Placeholder data used when the model omits or garbles the data blocks.
# ---------------------------------------------------------------------------
SERIES_TAG = "csv"
STATS_TAG = "stats"

FALLBACK_SERIES_LABELS = ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb"]
FALLBACK_SERIES_MIN = 20
FALLBACK_SERIES_MAX = 69
FALLBACK_STATS = [
    ("Active Startups", "150+", "up"),
    ("Est. Funding", "$85M", "up"),
    ("New Models", "12", "neutral"),
]
