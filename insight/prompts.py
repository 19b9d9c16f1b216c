"""Prompt text for the upload/performance report."""

from __future__ import annotations

import json
from typing import Any, Dict, List

SYSTEM_PROMPT = " ".join(
    [
        "You are a marketing and content analyst.",
        "Write a detailed, practical report based on the YouTube upload and performance log provided.",
        "Use numbered sections and bullets for readability and avoid rhetorical flourish.",
        "Separate patterns, exceptions, insights, risks and recommended actions clearly.",
    ]
)

REPORT_SECTIONS = [
    "## 1) Upload frequency and weekday/seasonal patterns",
    "- Volume, cadence, unusual spikes (and whether an event likely explains them)",
    "",
    "## 2) Shifts in messaging, products, or series",
    "- Changes in emphasis, product mix, series share, short vs long format",
    "",
    "## 3) What the top-performing videos share",
    "- Common keywords, formats, length, timing; views vs likes/comments",
    "",
    "## 4) Main content types",
    "- Campaign, product feature, review, how-to, event, corporate PR: traits and performance",
    "",
    "## 5) Risks and monitoring points",
    "- Metrics trending down, format or message concentration",
    "",
    "## 6) Overall assessment and recommendations",
    "- Concrete suggestions for brand, marketing, and content strategy",
]


def build_user_prompt(sample: List[Dict[str, Any]], days: int) -> str:
    return "\n".join(
        [
            f"Period: last {days} days",
            f"Data sample ({len(sample)} rows, oldest first):",
            json.dumps(sample, ensure_ascii=False, indent=2),
            "",
            "Write the report using this outline:",
            "",
            *REPORT_SECTIONS,
        ]
    )


__all__ = ["SYSTEM_PROMPT", "build_user_prompt"]
