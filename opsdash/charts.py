"""Plotly figures for the dashboard and job cards."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd
import plotly.graph_objects as go

# Shown when the user has no QBOs yet.
DEMO_QBOS: List[Dict[str, Any]] = [
    {
        "id": "demo-revenue",
        "name": "Monthly revenue",
        "unit": "USD",
        "beginningValue": 10000,
        "currentValue": 14000,
        "targetValue": 20000,
        "points": 60,
        "deadline": None,
        "demo": True,
    },
    {
        "id": "demo-customers",
        "name": "Active customers",
        "unit": "customers",
        "beginningValue": 40,
        "currentValue": 52,
        "targetValue": 100,
        "points": 40,
        "deadline": None,
        "demo": True,
    },
]


def _num(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def qbo_progress_pct(qbo: Mapping[str, Any]) -> float:
    """Share of the way from beginning to target, clamped to 0..100."""
    beginning = _num(qbo.get("beginningValue"))
    target = _num(qbo.get("targetValue"))
    current = _num(qbo.get("currentValue"))
    if target == beginning:
        return 0.0
    pct = (current - beginning) / (target - beginning) * 100.0
    return max(0.0, min(100.0, pct))


def qbo_frame(qbos: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "name": q.get("name") or "(unnamed)",
            "progress": round(qbo_progress_pct(q), 1),
            "points": int(_num(q.get("points"))),
            "current": _num(q.get("currentValue")),
            "target": _num(q.get("targetValue")),
            "unit": q.get("unit") or "",
        }
        for q in qbos
    ]
    return pd.DataFrame(rows, columns=["name", "progress", "points", "current", "target", "unit"])


def qbo_progress_figure(qbos: Sequence[Mapping[str, Any]]) -> go.Figure:
    df = qbo_frame(qbos)
    fig = go.Figure(
        go.Bar(
            x=df["progress"],
            y=df["name"],
            orientation="h",
            text=[f"{p:.0f}%" for p in df["progress"]],
            textposition="auto",
            customdata=df[["current", "target", "unit", "points"]].values,
            hovertemplate=(
                "%{y}<br>%{customdata[0]} / %{customdata[1]} %{customdata[2]}"
                "<br>%{customdata[3]} points<extra></extra>"
            ),
            marker_color="#2563eb",
        )
    )
    fig.update_layout(
        xaxis=dict(range=[0, 100], title="Progress (%)"),
        yaxis=dict(autorange="reversed"),
        height=max(220, 60 * len(df) + 80),
        margin=dict(l=10, r=10, t=30, b=10),
    )
    return fig


def job_progress_figure(percentage: int) -> go.Figure:
    """Small donut ring for a job card."""
    pct = max(0, min(100, int(percentage)))
    fig = go.Figure(
        go.Pie(
            values=[pct, 100 - pct],
            hole=0.75,
            sort=False,
            marker=dict(colors=["#16a34a", "#e5e7eb"]),
            textinfo="none",
            hoverinfo="skip",
        )
    )
    fig.update_layout(
        showlegend=False,
        height=120,
        width=120,
        margin=dict(l=0, r=0, t=0, b=0),
        annotations=[dict(text=f"{pct}%", x=0.5, y=0.5, showarrow=False, font_size=16)],
    )
    return fig
