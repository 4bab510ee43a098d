from __future__ import annotations

from typing import Any

from audit_dashboard.aggregate.detail import assemble_audit_detail
from audit_dashboard.models import AnswerStatus


def _row(topic: int, question: int, **extra: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id_auditoria": 42,
        "dt_auditoria": "2024-03-05",
        "observacao": "Visit went well",
        "nome_auditor": "Ana",
        "st_auditoria": "A",
        "id_cliente": 7,
        "nome_cliente": "ACME Ltda",
        "cnpj": "12.345.678/0001-90",
        "cliente_responsavel": "Carlos",
        "cliente_telefone": "11 5555-0000",
        "id_topico": topic,
        "nome_tema": f"Topic {topic}",
        "ordem_topico": topic,
        "id_pergunta": question,
        "descricao_pergunta": f"Question {question}",
        "ordem_pergunta": question,
        "st_pergunta": None,
        "comentario": None,
        "caminhos_fotos": None,
    }
    row.update(extra)
    return row


def test_empty_rows_return_none() -> None:
    assert assemble_audit_detail([]) is None


def test_missing_essential_ids_return_none() -> None:
    rows = [_row(1, 10, id_auditoria=None, id_cliente=None)]
    assert assemble_audit_detail(rows) is None


def test_topics_sorted_by_display_order() -> None:
    rows = [_row(2, 20), _row(1, 10)]
    detail = assemble_audit_detail(rows)
    assert detail is not None
    assert [t.id for t in detail.topics] == [1, 2]


def test_questions_sorted_and_deduplicated_first_seen() -> None:
    rows = [
        _row(1, 12, ordem_pergunta=2),
        _row(1, 11, ordem_pergunta=1, descricao_pergunta="first text"),
        _row(1, 11, ordem_pergunta=9, descricao_pergunta="second text"),
    ]
    detail = assemble_audit_detail(rows)
    assert detail is not None
    questions = detail.topics[0].questions
    assert [q.id for q in questions] == [11, 12]
    assert questions[0].text == "first text"


def test_unanswered_questions_get_defaults() -> None:
    detail = assemble_audit_detail([_row(1, 10)])
    assert detail is not None
    assert detail.answers == {10: None}
    assert detail.comments == {10: ""}
    assert detail.photos == {10: []}


def test_answer_overlay_carries_comment_and_photos() -> None:
    rows = [
        _row(1, 10, st_pergunta="PC", comentario="Fix label", caminhos_fotos="a.jpg,b.jpg"),
        _row(1, 11, st_pergunta="CF"),
    ]
    detail = assemble_audit_detail(rows)
    assert detail is not None
    assert detail.answers == {10: AnswerStatus.PC, 11: AnswerStatus.CF}
    assert detail.comments == {10: "Fix label", 11: ""}
    assert detail.photos == {10: ["a.jpg", "b.jpg"], 11: []}


def test_rows_without_topic_or_question_are_skipped() -> None:
    rows = [_row(1, 10), _row(None, 11), _row(2, None)]  # type: ignore[arg-type]
    detail = assemble_audit_detail(rows)
    assert detail is not None
    assert [t.id for t in detail.topics] == [1]
    assert list(detail.answers) == [10]


def test_payload_shape_for_audit_form() -> None:
    detail = assemble_audit_detail([_row(1, 10, st_pergunta="NC", requisitos="ISO 27001 A.12")])
    assert detail is not None
    payload = detail.to_payload()
    assert set(payload) == {"auditoriaInfo", "clienteInfo", "topicos", "respostas", "observacoes", "fotos"}
    assert payload["auditoriaInfo"] == {
        "id": 42,
        "dt_auditoria": "2024-03-05",
        "observacao": "Visit went well",
        "auditorResponsavel": "Ana",
        "st_auditoria": "A",
    }
    assert payload["clienteInfo"]["razao_social"] == "ACME Ltda"
    assert payload["clienteInfo"]["cnpj"] == "12.345.678/0001-90"
    topic = payload["topicos"][0]
    assert topic["nome_tema"] == "Topic 1"
    assert topic["requisitos"] == "ISO 27001 A.12"
    assert topic["perguntas"][0]["descricao_pergunta"] == "Question 10"
    assert payload["respostas"] == {"10": "NC"}


def test_unknown_answer_status_keeps_question_unanswered() -> None:
    rows = [_row(1, 10), _row(1, 11, st_pergunta="N/A", comentario="see photo")]
    detail = assemble_audit_detail(rows)
    assert detail is not None
    assert [q.id for q in detail.topics[0].questions] == [10, 11]
    assert detail.answers[11] is None
    assert detail.comments[11] == ""
    assert detail.photos[11] == []
