from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from audit_dashboard.aggregate.dashboard import aggregate_dashboard, overall_score
from audit_dashboard.models import DashboardReport, MonthlyResult


def _row(audit: int, day: date, topic: int, question: int, status: str | None, **extra: Any) -> dict[str, Any]:
    row = {
        "audit_id": audit,
        "audit_date": day,
        "topic_id": topic,
        "topic_name": f"Topic {topic}",
        "question_id": question,
        "status": status,
    }
    row.update(extra)
    return row


def _topic_rows(audit: int, day: date, topic: int, statuses: list[str | None]) -> list[dict[str, Any]]:
    return [
        _row(audit, day, topic, topic * 100 + i, status)
        for i, status in enumerate(statuses)
    ]


MARCH = date(2024, 3, 10)
MAY = date(2024, 5, 2)


def test_empty_rows_yield_twelve_null_months() -> None:
    out = aggregate_dashboard([], 2024).to_payload()
    assert out["processos"] == []
    assert len(out["resultadosMensais"]) == 12
    assert out["resultadosMensais"][0] == {"mes": "JAN/24", "resultado": None}
    assert [m["mes"] for m in out["resultadosMensais"]][-1] == "DEZ/24"
    assert all(m["resultado"] is None for m in out["resultadosMensais"])


def test_topic_score_weights_cf_pc_nc() -> None:
    report = aggregate_dashboard(_topic_rows(1, MARCH, 1, ["CF", "PC", "NC"]), 2024)
    assert report.processes[0].mar == 50
    assert report.monthly_results[2].result == 50


def test_topic_score_rounds_half_up() -> None:
    report = aggregate_dashboard(_topic_rows(1, MARCH, 1, ["PC", "NC", "NC", "NC"]), 2024)
    assert report.processes[0].mar == 13


def test_not_evaluated_topic_is_null_not_zero() -> None:
    rows = _topic_rows(1, MARCH, 1, ["NE", "NE"]) + _topic_rows(1, MARCH, 2, ["NC", "NC"])
    report = aggregate_dashboard(rows, 2024)
    by_id = {p.id: p for p in report.processes}
    assert by_id[1].mar is None
    assert by_id[2].mar == 0
    assert report.monthly_results[2].result == 0


def test_topic_absent_from_month_is_null() -> None:
    rows = _topic_rows(1, MARCH, 1, ["CF"]) + _topic_rows(2, MAY, 2, ["CF"])
    report = aggregate_dashboard(rows, 2024)
    by_id = {p.id: p for p in report.processes}
    assert by_id[1].mar == 100
    assert by_id[1].mai is None
    assert by_id[2].mar is None
    assert by_id[2].mai == 100
    assert [m.result for m in report.monthly_results].count(None) == 10


def test_monthly_overall_averages_audit_means_not_topics() -> None:
    # audit 1: one topic at 80%; audit 2: topics at 40% and 80% (mean 60%)
    rows = (
        _topic_rows(1, MARCH, 1, ["CF", "CF", "CF", "CF", "NC"])
        + _topic_rows(2, date(2024, 3, 20), 2, ["CF", "CF", "NC", "NC", "NC"])
        + _topic_rows(2, date(2024, 3, 20), 3, ["CF", "CF", "CF", "CF", "NC"])
    )
    report = aggregate_dashboard(rows, 2024)
    assert report.monthly_results[2].result == 70


def test_audit_without_scored_topics_does_not_dilute_month() -> None:
    rows = _topic_rows(1, MARCH, 1, ["NE", None]) + _topic_rows(2, MARCH, 1, ["CF"])
    report = aggregate_dashboard(rows, 2024)
    assert report.monthly_results[2].result == 100
    assert report.processes[0].mar == 100


def test_topic_month_cell_averages_audits_in_month() -> None:
    rows = _topic_rows(1, MARCH, 1, ["CF", "NC"]) + _topic_rows(2, MARCH, 1, ["CF", "CF"])
    report = aggregate_dashboard(rows, 2024)
    assert report.processes[0].mar == 75


def test_duplicate_question_first_occurrence_wins() -> None:
    rows = [
        _row(1, MARCH, 1, 10, "NC"),
        _row(1, MARCH, 1, 10, "CF"),
        _row(1, MARCH, 1, 11, "CF"),
    ]
    report = aggregate_dashboard(rows, 2024)
    assert report.processes[0].mar == 50


def test_malformed_rows_are_skipped() -> None:
    rows = [
        _row(1, MARCH, 1, 10, "CF"),
        {"audit_id": 1, "audit_date": MARCH, "question_id": 11, "status": "NC"},
        {"audit_id": 1, "audit_date": MARCH, "topic_id": 1, "status": "NC"},
        {"audit_id": 1, "audit_date": MARCH, "topic_id": 1, "question_id": 12, "status": "??"},
    ]
    report = aggregate_dashboard(rows, 2024)
    assert len(report.processes) == 1
    assert report.processes[0].mar == 100


def test_processes_follow_topic_display_order() -> None:
    rows = [
        _row(1, MARCH, 7, 1, "CF", topic_order=2),
        _row(1, MARCH, 3, 2, "CF", topic_order=1),
        _row(1, MARCH, 9, 3, "CF"),
    ]
    report = aggregate_dashboard(rows, 2024)
    assert [p.id for p in report.processes] == [3, 7, 9]


def test_accepts_joined_column_names() -> None:
    rows = [
        {
            "auditoria_id": 5,
            "dt_auditoria": "2024-08-14",
            "topico_id": 2,
            "nome_tema": "Backup Procedures",
            "pergunta_id": 20,
            "st_pergunta": "pc",
        }
    ]
    payload = aggregate_dashboard(rows, 2024).to_payload()
    process = payload["processos"][0]
    assert process["nome_tema"] == "Backup Procedures"
    assert process["ago"] == 50
    assert set(process) == {
        "id", "nome_tema", "jan", "fev", "mar", "abr", "mai", "jun",
        "jul", "ago", "set", "out", "nov", "dez",
    }


def test_aware_dates_bucket_in_configured_zone() -> None:
    late = datetime(2024, 3, 31, 20, 0, tzinfo=timezone.utc)
    rows = _topic_rows(1, late, 1, ["CF"])
    assert aggregate_dashboard(rows, 2024).processes[0].mar == 100
    tokyo = aggregate_dashboard(rows, 2024, ZoneInfo("Asia/Tokyo"))
    assert tokyo.processes[0].mar is None
    assert tokyo.processes[0].abr == 100


def test_aggregation_is_deterministic() -> None:
    rows = _topic_rows(1, MARCH, 1, ["CF", "PC"]) + _topic_rows(2, MAY, 2, ["NC", "CF"])
    assert aggregate_dashboard(rows, 2024) == aggregate_dashboard(rows, 2024)


def test_overall_score_is_mean_of_monthly_results() -> None:
    months = [MonthlyResult(label=f"M{i}", result=None) for i in range(12)]
    months[0] = MonthlyResult(label="JAN/24", result=80)
    months[5] = MonthlyResult(label="JUN/24", result=61)
    assert overall_score(DashboardReport(monthly_results=months)) == 71
    assert overall_score(aggregate_dashboard([], 2024)) is None


def test_unknown_answer_status_counts_as_unanswered() -> None:
    rows = [
        _row(1, MARCH, 1, 10, "CF"),
        _row(1, MARCH, 2, 20, "N/A"),
    ]
    report = aggregate_dashboard(rows, 2024)
    assert [p.id for p in report.processes] == [1, 2]
    assert report.processes[1].mar is None
    assert report.monthly_results[2].result == 100
