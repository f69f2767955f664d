"""Excel marking template for one assessment, and the parser that turns a filled template back into score entries."""

import io
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from uuid import UUID

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, Protection
from openpyxl.worksheet.datavalidation import DataValidation
from pydantic import ValidationError

from academics.core.exceptions import ValidationFailedError

from .schemas import ScoreEntry, ScoreSheetResponse

MARKS_SHEET_NAME = "Marks"
TEMPLATE_HEADERS = ("student_number", "student_name", "score", "remarks", "student_id", "assessment_id")
REQUIRED_HEADERS = ("score", "student_id", "assessment_id")
EXCEL_MAX_ROWS = 1000

# 1-based column letters matching TEMPLATE_HEADERS
SCORE_COLUMN = "C"
REMARKS_COLUMN = "D"
HIDDEN_COLUMNS = ("E", "F")


def build_marking_template(sheet: ScoreSheetResponse) -> bytes:
    """
    One row per roster student, pre-filled with any score already recorded.

    Only the score and remarks cells are editable; the sheet is protected otherwise.
    The score column carries a decimal validation between 0 and the assessment's max score.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = MARKS_SHEET_NAME
    ws.append(list(TEMPLATE_HEADERS))
    for cell in ws[1]:
        cell.font = Font(bold=True)

    assessment_id = str(sheet.assessment_id)
    for row in sheet.rows:
        ws.append(
            [
                row.student_number,
                row.student_name,
                float(row.score) if row.score is not None else None,
                row.remarks,
                str(row.student_id),
                assessment_id,
            ]
        )

    last_row = max(len(sheet.rows) + 1, 2)
    for row_idx in range(2, last_row + 1):
        ws[f"{SCORE_COLUMN}{row_idx}"].protection = Protection(locked=False)
        ws[f"{REMARKS_COLUMN}{row_idx}"].protection = Protection(locked=False)

    dv_score = DataValidation(
        type="decimal",
        operator="between",
        formula1="0",
        formula2=str(sheet.max_score),
        allow_blank=True,
    )
    dv_score.error = f"Score must be between 0 and {sheet.max_score}"
    dv_score.errorTitle = "Invalid score"
    ws.add_data_validation(dv_score)
    dv_score.add(f"{SCORE_COLUMN}2:{SCORE_COLUMN}{last_row}")

    ws.column_dimensions["A"].width = 18
    ws.column_dimensions["B"].width = 32
    ws.column_dimensions[REMARKS_COLUMN].width = 40
    for col in HIDDEN_COLUMNS:
        ws.column_dimensions[col].hidden = True
    ws.protection.sheet = True

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _cell_str(row: tuple, col: int) -> str:
    if col >= len(row):
        return ""
    v = row[col]
    if v is None:
        return ""
    return str(v).strip()


def _row_error(row_num: int, message: str, **details) -> ValidationFailedError:
    return ValidationFailedError(f"Row {row_num}: {message}", row=row_num, **details)


def parse_marks_workbook(filename: Optional[str], content: bytes, assessment_id: UUID) -> List[ScoreEntry]:
    """Parse a filled marking template. Raises ValidationFailedError naming the offending row."""
    if not filename or not filename.lower().endswith(".xlsx"):
        raise ValidationFailedError("File must be an Excel file (.xlsx)", field="file")
    if not content:
        raise ValidationFailedError("File is empty", field="file")

    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValidationFailedError(f"Invalid Excel file: {e}", field="file") from e

    try:
        ws = wb[MARKS_SHEET_NAME] if MARKS_SHEET_NAME in wb.sheetnames else wb.active
        rows_iter = ws.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if not header_row:
            raise ValidationFailedError("Excel file has no header row", field="file")

        def _norm(s) -> str:
            return (str(s).strip().lower() if s is not None else "").replace(" ", "_")

        headers = [_norm(c) for c in header_row]
        col_idx = {}
        for h in TEMPLATE_HEADERS:
            if h in headers:
                col_idx[h] = headers.index(h)
        for h in REQUIRED_HEADERS:
            if h not in col_idx:
                raise ValidationFailedError(f"Missing required column: {h}", field="file", found=headers)

        entries: List[ScoreEntry] = []
        expected = str(assessment_id)
        for row_num, row in enumerate(rows_iter, start=2):
            if row_num - 1 > EXCEL_MAX_ROWS:
                raise ValidationFailedError(f"Maximum {EXCEL_MAX_ROWS} data rows allowed", field="file")
            if not row or all(c is None or (isinstance(c, str) and not c.strip()) for c in row):
                continue

            if _cell_str(row, col_idx["assessment_id"]) != expected:
                raise _row_error(row_num, "row belongs to a different assessment's template", field="assessment_id")
            try:
                student_id = UUID(_cell_str(row, col_idx["student_id"]))
            except ValueError:
                raise _row_error(row_num, "student_id is missing or not a valid id", field="student_id")

            raw_score = row[col_idx["score"]] if col_idx["score"] < len(row) else None
            score: Optional[Decimal] = None
            if raw_score is not None and str(raw_score).strip() != "":
                try:
                    score = Decimal(str(raw_score).strip())
                except InvalidOperation:
                    raise _row_error(row_num, f"score '{raw_score}' is not a number", field="score")
                if not score.is_finite():
                    raise _row_error(row_num, f"score '{raw_score}' is not a finite number", field="score")

            remarks = _cell_str(row, col_idx["remarks"]) if "remarks" in col_idx else ""
            try:
                entries.append(ScoreEntry(student_id=student_id, score=score, remarks=remarks or None))
            except ValidationError as e:
                err = e.errors()[0]
                field = str(err["loc"][0]) if err.get("loc") else "row"
                raise _row_error(row_num, f"{field}: {err['msg']}", field=field) from e
    finally:
        wb.close()

    if not entries:
        raise ValidationFailedError("Excel file has no data rows", field="file")
    return entries
