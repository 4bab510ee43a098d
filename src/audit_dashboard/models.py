"""Pydantic models for audit rows and the aggregation outputs.

`AuditRow` is the flattened input unit (one row per audit × topic × question)
and accepts both the English field names and the column names produced by the
relational join (``id_auditoria``, ``st_pergunta``...). The output models use
English attribute names and serialise, by alias, to the payload shape the
presentation layer expects.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AnswerStatus(str, Enum):
    """Fixed answer vocabulary for an audit question."""
    CF = "CF"  # fully compliant
    PC = "PC"  # partially compliant
    NC = "NC"  # non-compliant
    NE = "NE"  # not evaluated


def _alias(*names: str) -> Any:
    return Field(None, validation_alias=AliasChoices(*names))


class AuditRow(BaseModel):
    """Schema for one flattened audit row.

    Every field is optional so that rows with broken joins can still be
    represented; the aggregation core decides which ones to skip.
    """
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    audit_id: int | None = _alias("audit_id", "id_auditoria", "auditoria_id")
    audit_date: datetime | date | None = _alias("audit_date", "dt_auditoria")
    general_comment: str | None = _alias("general_comment", "observacao")
    auditor_name: str | None = _alias("auditor_name", "nome_auditor")
    audit_status: str | None = _alias("audit_status", "st_auditoria")

    client_id: int | None = _alias("client_id", "id_cliente", "cliente_id")
    client_name: str | None = _alias("client_name", "nome_cliente", "razao_social")
    tax_id: str | None = _alias("tax_id", "cnpj")
    client_contact: str | None = _alias("client_contact", "cliente_responsavel")
    client_phone: str | None = _alias("client_phone", "cliente_telefone")

    topic_id: int | None = _alias("topic_id", "id_topico", "topico_id")
    topic_name: str | None = _alias("topic_name", "nome_tema")
    topic_requirements: str | None = _alias("topic_requirements", "requisitos")
    topic_order: int | None = _alias("topic_order", "ordem_topico")

    question_id: int | None = _alias("question_id", "id_pergunta", "pergunta_id")
    question_text: str | None = _alias("question_text", "descricao_pergunta")
    question_order: int | None = _alias("question_order", "ordem_pergunta")

    status: AnswerStatus | None = _alias("status", "st_pergunta")
    comment: str | None = _alias("comment", "comentario")
    photo_paths: list[str] | None = _alias("photo_paths", "caminhos_fotos")

    @field_validator("audit_date", mode="before")
    @classmethod
    def _parse_audit_date(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if len(v) == 10:
                return date.fromisoformat(v)
            return datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator("photo_paths", mode="before")
    @classmethod
    def _split_photo_paths(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v


# =========================================================
# DETAIL OUTPUT
# =========================================================

class AuditInfo(BaseModel):
    """Audit metadata shown at the top of the audit form."""
    id: int
    audit_date: datetime | date | None = Field(None, serialization_alias="dt_auditoria")
    general_comment: str | None = Field(None, serialization_alias="observacao")
    auditor_name: str | None = Field(None, serialization_alias="auditorResponsavel")
    audit_status: str | None = Field(None, serialization_alias="st_auditoria")


class ClientInfo(BaseModel):
    """Audited client metadata."""
    id: int
    legal_name: str | None = Field(None, serialization_alias="razao_social")
    tax_id: str | None = Field(None, serialization_alias="cnpj")
    contact: str | None = Field(None, serialization_alias="responsavel")
    phone: str | None = Field(None, serialization_alias="telefone")


class DetailQuestion(BaseModel):
    id: int
    text: str | None = Field(None, serialization_alias="descricao_pergunta")
    order: int | None = Field(None, serialization_alias="ordem_pergunta")


class DetailTopic(BaseModel):
    id: int
    name: str | None = Field(None, serialization_alias="nome_tema")
    requirements: str | None = Field(None, serialization_alias="requisitos")
    order: int | None = Field(None, serialization_alias="ordem_topico")
    questions: list[DetailQuestion] = Field(default_factory=list, serialization_alias="perguntas")


class AuditDetail(BaseModel):
    """Nested record for one audit.

    Attributes:
        audit_info: Audit metadata.
        client_info: Client metadata.
        topics: Topics ordered by display order, each with ordered questions.
        answers: Answer status per question id (``None`` when unanswered).
        comments: Comment per question id (empty string by default).
        photos: Photo paths per question id (empty list by default).
    """
    audit_info: AuditInfo = Field(serialization_alias="auditoriaInfo")
    client_info: ClientInfo = Field(serialization_alias="clienteInfo")
    topics: list[DetailTopic] = Field(default_factory=list, serialization_alias="topicos")
    answers: dict[int, AnswerStatus | None] = Field(default_factory=dict, serialization_alias="respostas")
    comments: dict[int, str] = Field(default_factory=dict, serialization_alias="observacoes")
    photos: dict[int, list[str]] = Field(default_factory=dict, serialization_alias="fotos")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready payload keyed the way the audit form expects."""
        return self.model_dump(mode="json", by_alias=True)


# =========================================================
# DASHBOARD OUTPUT
# =========================================================

# Integer percentage in [0, 100]; None means no data for the cell.
Percentage = Annotated[Optional[int], Field(ge=0, le=100)]


class ProcessScores(BaseModel):
    """One topic row of the dashboard matrix with a percentage per month."""
    model_config = ConfigDict(extra="forbid")
    id: int
    name: str | None = Field(None, serialization_alias="nome_tema")
    jan: Percentage = None
    fev: Percentage = None
    mar: Percentage = None
    abr: Percentage = None
    mai: Percentage = None
    jun: Percentage = None
    jul: Percentage = None
    ago: Percentage = None
    set: Percentage = None
    out: Percentage = None
    nov: Percentage = None
    dez: Percentage = None


class MonthlyResult(BaseModel):
    """Overall result for one calendar month, labelled ``MES/YY``."""
    model_config = ConfigDict(extra="forbid")
    label: str = Field(serialization_alias="mes")
    result: int | None = Field(None, ge=0, le=100, serialization_alias="resultado")


class DashboardReport(BaseModel):
    """Topic × month matrix plus the twelve monthly overall results."""
    processes: list[ProcessScores] = Field(default_factory=list, serialization_alias="processos")
    monthly_results: list[MonthlyResult] = Field(
        default_factory=list, serialization_alias="resultadosMensais"
    )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready ``{processos, resultadosMensais}`` payload."""
        return self.model_dump(mode="json", by_alias=True)


class StoredDashboardReport(BaseModel):
    """Persisted dashboard for one (client, year) pair."""
    model_config = ConfigDict(extra="forbid")
    client_id: int
    year: int = Field(..., ge=1, le=9999)
    overall_score: int | None = Field(None, ge=0, le=100)
    audits_count: int = Field(..., ge=0)
    report: dict[str, Any]
    built_ts: datetime
