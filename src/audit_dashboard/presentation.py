"""Frames and colours used to display a dashboard report.

The Streamlit app and any export share these helpers so the traffic-light
bands stay identical everywhere: 80+ green, 50+ amber, below red, no data
grey.
"""

from __future__ import annotations

import pandas as pd

from audit_dashboard.aggregate.dashboard import overall_score
from audit_dashboard.aggregate.scoring import MONTH_ABBREVIATIONS
from audit_dashboard.models import DashboardReport

NO_DATA_COLOR = "#999"


def score_color(value: float | None) -> str:
    """Return the background colour for a percentage (grey when no data)."""
    if value is None or pd.isna(value):
        return NO_DATA_COLOR
    if value >= 80:
        return "#1ca41c"
    if value >= 50:
        return "#f2c037"
    return "#dc3545"


def text_color(value: float | None) -> str:
    """Return a readable text colour on top of `score_color(value)`."""
    if value is None or pd.isna(value):
        return "#333"
    if 50 <= value < 80:
        return "#333"
    return "#fff"


def processes_frame(report: DashboardReport) -> pd.DataFrame:
    """Return the topic × month matrix, one row per topic.

    Columns are ``Processo`` followed by the upper-cased month abbreviations;
    month columns use the nullable ``Int64`` dtype so missing cells stay
    distinct from a 0% score.
    """
    columns = ["Processo", *[abbr.upper() for abbr in MONTH_ABBREVIATIONS]]
    records = []
    for process in report.processes:
        rec: dict[str, object] = {"Processo": process.name or f"#{process.id}"}
        for abbr in MONTH_ABBREVIATIONS:
            rec[abbr.upper()] = getattr(process, abbr)
        records.append(rec)

    df = pd.DataFrame(records, columns=columns)
    for col in columns[1:]:
        df[col] = df[col].astype("Int64")
    return df


def monthly_frame(report: DashboardReport) -> pd.DataFrame:
    """Return the monthly overall series with a colour column for charting."""
    df = pd.DataFrame(
        {
            "mes": [m.label for m in report.monthly_results],
            "resultado": pd.array([m.result for m in report.monthly_results], dtype="Int64"),
        }
    )
    df["cor"] = [score_color(m.result) for m in report.monthly_results]
    return df


def overall_frame(report: DashboardReport) -> pd.DataFrame:
    """Return the two donut slices: the yearly score and the remainder."""
    score = overall_score(report)
    achieved = score or 0
    return pd.DataFrame(
        {
            "parte": ["Resultado", "Restante"],
            "valor": [achieved, 100 - achieved],
            "cor": [score_color(score), "#e9ecef"],
        }
    )


def style_processes(df: pd.DataFrame):
    """Colour each month cell of `processes_frame` by its score band."""
    months = [abbr.upper() for abbr in MONTH_ABBREVIATIONS]

    def _cell(value: object) -> str:
        v = None if pd.isna(value) else float(value)  # type: ignore[arg-type]
        return f"background-color: {score_color(v)}; color: {text_color(v)}; text-align: center"

    return (
        df.style
        .map(_cell, subset=months)
        .format(lambda v: "-" if pd.isna(v) else f"{v}%", subset=months)
        .set_table_styles([{"selector": "th", "props": [("text-align", "center")]}])
    )
