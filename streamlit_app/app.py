from __future__ import annotations

import altair as alt
import streamlit as st

from audit_dashboard.aggregate.dashboard import aggregate_dashboard, overall_score
from audit_dashboard.config import get_settings
from audit_dashboard.db import (
    fetch_audit_years,
    fetch_clients,
    fetch_dashboard_rows,
    get_client,
    get_db,
)
from audit_dashboard.logging_config import configure_logging
from audit_dashboard.presentation import (
    NO_DATA_COLOR,
    monthly_frame,
    overall_frame,
    processes_frame,
    style_processes,
)

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="RTO - Relatório Técnico Operacional", layout="wide")
st.title("📋 RTO - Relatório Técnico Operacional")

settings = get_settings()
configure_logging(level=settings.log_level)

# =====================================================
# MongoDB connection
# =====================================================
try:
    client = get_client(settings.mongo_uri, tls=settings.mongo_tls)
    # fail fast: ensure the client can reach the server
    client.admin.command("ping")
    rows_collection = get_db(client, settings.mongo_db)[settings.rows_collection]
except Exception as exc:  # pragma: no cover - runtime failure handling
    st.error(f"Unable to connect to MongoDB: {exc}")
    st.stop()


@st.cache_data(ttl=300)
def load_clients() -> list[dict]:
    return fetch_clients(rows_collection)


@st.cache_data(ttl=300)
def load_years(client_id: int) -> list[int]:
    return fetch_audit_years(rows_collection, client_id, str(settings.audit_timezone))


@st.cache_data(ttl=60)
def load_rows(client_id: int, year: int) -> list[dict]:
    return fetch_dashboard_rows(rows_collection, client_id, year, settings.audit_timezone)


# =====================================================
# Filters
# =====================================================
clients = load_clients()
if not clients:
    st.warning("No audit rows available. Run `audit-dashboard ingest` first.")
    st.stop()

labels = {c["client_id"]: c["client_name"] or f"Cliente {c['client_id']}" for c in clients}
f1, f2 = st.columns(2)
with f1:
    client_id = st.selectbox("Empresa", list(labels), format_func=labels.get)
with f2:
    years = load_years(client_id)
    year = st.selectbox("Ano", years) if years else None

if year is None:
    st.info("This client has no audits yet.")
    st.stop()

report = aggregate_dashboard(load_rows(client_id, year), year, settings.audit_timezone)
score = overall_score(report)

st.divider()

# =====================================================
# SECTION 1 — TOPIC × MONTH MATRIX
# =====================================================
st.header(f"Processos — {labels[client_id]} ({year})")

df_processes = processes_frame(report)
if df_processes.empty:
    st.info("No topics were audited in this year.")
else:
    st.dataframe(style_processes(df_processes), width="stretch", hide_index=True)
    st.caption("Grey cells: no audit for the topic in that month (not a 0% score).")

st.divider()

# =====================================================
# SECTION 2 — MONTHLY RESULTS + OVERALL
# =====================================================
c1, c2 = st.columns([3, 1])

with c1:
    st.subheader("Resultado de Auditoria (%)")
    df_monthly = monthly_frame(report)
    bars = (
        alt.Chart(df_monthly)
        .mark_bar()
        .encode(
            x=alt.X("mes:N", sort=None, title="Mês"),
            y=alt.Y("resultado:Q", title="Porcentagem (%)", scale=alt.Scale(domain=[0, 100])),
            color=alt.Color("cor:N", scale=None),
            tooltip=["mes:N", "resultado:Q"],
        )
        .properties(height=320)
    )
    st.altair_chart(bars, width="stretch")

with c2:
    st.subheader("Resultado Geral")
    donut = (
        alt.Chart(overall_frame(report))
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("valor:Q"),
            color=alt.Color("cor:N", scale=None),
            tooltip=["parte:N", "valor:Q"],
        )
        .properties(height=240)
    )
    st.altair_chart(donut, width="stretch")
    st.metric("Resultado Geral", "N/A" if score is None else f"{score}%")
    if score is None:
        st.caption(f"No monthly results ({NO_DATA_COLOR} = no data).")

# =====================================================
# Footer
# =====================================================
st.caption("Audit rows • MongoDB • Dask • Streamlit • Compliance dashboard")
