"""HTTP surface: authentication, role gates and error body shape."""

import io
import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from openpyxl import load_workbook

from academics.api.v1.scores.workbook import MARKS_SHEET_NAME

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _create_exam(client: AsyncClient, school, admin_headers, max_score: str = "100") -> str:
    type_resp = await client.post(
        "/api/v1/assessment-types",
        json={"name": "End of Term Exam", "kind": "endOfTerm", "weight": "60"},
        headers=admin_headers,
    )
    assert type_resp.status_code == 201
    resp = await client.post(
        "/api/v1/assessments",
        json={
            "title": "Term 3 Mathematics Exam",
            "date": "2026-07-10",
            "max_score": max_score,
            "assessment_type_id": type_resp.json()["id"],
            "subject_id": str(school.math_id),
            "class_id": str(school.jhs1_id),
            "term_id": str(school.term3_id),
            "school_year_id": str(school.year_id),
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client: AsyncClient, school) -> None:
    resp = await client.get("/api/v1/assessment-types")
    assert resp.status_code == 401

    resp = await client.get("/api/v1/assessment-types", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_reject_other_roles(client: AsyncClient, school, auth_headers) -> None:
    body = {"name": "Quiz", "kind": "continuous", "weight": "10"}
    for role in ("STUDENT", "TEACHER"):
        resp = await client.post("/api/v1/assessment-types", json=body, headers=auth_headers(uuid.uuid4(), role))
        assert resp.status_code == 403

    resp = await client.post(
        f"/api/v1/promotions/students/{school.student_a_id}",
        json={"target_class_id": str(school.jhs2_id)},
        headers=auth_headers(uuid.uuid4(), "TEACHER"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_error_body_shape(client: AsyncClient, school, admin_headers) -> None:
    resp = await client.post(
        "/api/v1/assessments",
        json={
            "title": "Orphan",
            "date": "2026-07-10",
            "max_score": "20",
            "assessment_type_id": str(uuid.uuid4()),
            "subject_id": str(school.math_id),
            "term_id": str(school.term3_id),
            "school_year_id": str(school.year_id),
        },
        headers=admin_headers,
    )
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["code"] == "not_found"
    assert detail["details"]["field"] == "assessment_type_id"
    assert detail["note"] == "No changes were saved."


@pytest.mark.asyncio
async def test_submit_scores_over_http(client: AsyncClient, school, admin_headers) -> None:
    exam_id = await _create_exam(client, school, admin_headers)

    resp = await client.post(
        f"/api/v1/assessments/{exam_id}/scores",
        json={
            "entries": [
                {"student_id": str(school.student_a_id), "score": "55"},
                {"student_id": str(school.student_b_id), "score": None},
            ]
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert (body["created"], body["updated"], body["skipped"]) == (1, 0, 1)

    resp = await client.post(
        f"/api/v1/assessments/{exam_id}/scores",
        json={"entries": [{"student_id": str(school.student_b_id), "score": "101"}]},
        headers=admin_headers,
    )
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "validation_failed"
    assert detail["details"]["range"] == [0, 100.0]

    sheet = await client.get(f"/api/v1/assessments/{exam_id}/scores", headers=admin_headers)
    scores = {row["student_id"]: row["score"] for row in sheet.json()["rows"]}
    assert Decimal(scores[str(school.student_a_id)]) == Decimal("55")
    assert scores[str(school.student_b_id)] is None


@pytest.mark.asyncio
async def test_teacher_needs_assignment_to_grade(client: AsyncClient, school, admin_headers, auth_headers) -> None:
    exam_id = await _create_exam(client, school, admin_headers)
    teacher_id = uuid.uuid4()
    payload = {"entries": [{"student_id": str(school.student_a_id), "score": "70"}]}

    resp = await client.post(
        f"/api/v1/assessments/{exam_id}/scores", json=payload, headers=auth_headers(teacher_id, "TEACHER")
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "permission_denied"

    assigned = await client.post(
        f"/api/v1/teaching-assignments/teachers/{teacher_id}/duties",
        json={
            "duties": [
                {
                    "type": "teaching",
                    "subject_id": str(school.math_id),
                    "class_id": str(school.jhs1_id),
                    "term_id": str(school.term3_id),
                    "school_year_id": str(school.year_id),
                }
            ]
        },
        headers=admin_headers,
    )
    assert assigned.status_code == 201

    resp = await client.post(
        f"/api/v1/assessments/{exam_id}/scores", json=payload, headers=auth_headers(teacher_id, "TEACHER")
    )
    assert resp.status_code == 200
    assert resp.json()["created"] == 1


@pytest.mark.asyncio
async def test_duty_payload_with_foreign_fields_is_rejected(client: AsyncClient, school, admin_headers) -> None:
    resp = await client.post(
        f"/api/v1/teaching-assignments/teachers/{uuid.uuid4()}/duties",
        json={"duties": [{"type": "supervisor", "class_id": str(school.jhs1_id), "subject_id": str(school.math_id)}]},
        headers=admin_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_marking_template_round_trip(client: AsyncClient, school, admin_headers) -> None:
    exam_id = await _create_exam(client, school, admin_headers, max_score="40")

    resp = await client.get(f"/api/v1/assessments/{exam_id}/marking-template", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX

    wb = load_workbook(io.BytesIO(resp.content))
    ws = wb[MARKS_SHEET_NAME]
    for row in range(2, ws.max_row + 1):
        if ws.cell(row=row, column=5).value == str(school.student_a_id):
            ws.cell(row=row, column=3, value=32.5)
    filled = io.BytesIO()
    wb.save(filled)

    resp = await client.post(
        f"/api/v1/assessments/{exam_id}/scores/import",
        files={"file": ("marks.xlsx", filled.getvalue(), XLSX)},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert (body["created"], body["skipped"]) == (1, 1)

    resp = await client.post(
        f"/api/v1/assessments/{exam_id}/scores/import",
        files={"file": ("marks.csv", b"student_id,score\n", "text/csv")},
        headers=admin_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_students_only_read_their_own_results(client: AsyncClient, school, make_record, auth_headers) -> None:
    await make_record(school.student_a_id, school.math_id, 80)
    await make_record(school.student_a_id, school.english_id, 60, published=False)

    own = auth_headers(school.student_a_id, "STUDENT")
    resp = await client.get(f"/api/v1/reports/students/{school.student_a_id}/summary", headers=own)
    assert resp.status_code == 200
    assert resp.json()["overall_average"] == "80.00"

    resp = await client.get(
        f"/api/v1/academic-records/students/{school.student_a_id}/years/{school.year_id}/terms/{school.term3_id}",
        headers=own,
    )
    assert resp.status_code == 200
    assert [r["subject_name"] for r in resp.json()] == ["Mathematics"]

    other = auth_headers(school.student_b_id, "STUDENT")
    resp = await client.get(f"/api/v1/reports/students/{school.student_a_id}/summary", headers=other)
    assert resp.status_code == 403

    resp = await client.get(
        f"/api/v1/reports/classes/years/{school.year_id}/terms/{school.term3_id}", headers=own
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_teacher_report_is_limited_to_the_teacher(client: AsyncClient, school, auth_headers) -> None:
    teacher_id = uuid.uuid4()
    path = (
        f"/api/v1/reports/teachers/{teacher_id}/subjects/{school.math_id}"
        f"/years/{school.year_id}/terms/{school.term3_id}"
    )
    resp = await client.get(path, headers=auth_headers(uuid.uuid4(), "TEACHER"))
    assert resp.status_code == 403

    resp = await client.get(path, headers=auth_headers(teacher_id, "TEACHER"))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_promotion_precondition_over_http(client: AsyncClient, school, admin_headers) -> None:
    resp = await client.post(
        f"/api/v1/promotions/students/{school.student_a_id}",
        json={"target_class_id": str(school.jhs2_id)},
        headers=admin_headers,
    )
    assert resp.status_code == 412
    assert resp.json()["detail"]["code"] == "precondition_failed"
