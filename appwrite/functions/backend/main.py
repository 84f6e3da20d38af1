import json
import math
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs


def _find_src_dir(start_file: Path) -> Optional[Path]:
    env_src = os.getenv("UTHMHUB_SRC_DIR", "").strip()
    if env_src:
        env_path = Path(env_src)
        if (env_path / "uthmhub" / "core" / "grading.py").exists():
            return env_path

    for parent in (start_file.parent, *start_file.parents):
        if (parent / "uthmhub" / "core" / "grading.py").exists():
            return parent

        candidate = parent / "src"
        if (candidate / "uthmhub" / "core" / "grading.py").exists():
            return candidate

    return None


SRC_DIR = _find_src_dir(Path(__file__).resolve())
if SRC_DIR is None:
    raise RuntimeError(
        "Could not locate src/uthmhub. Set the Appwrite Function root to the repository root "
        "and the entrypoint to appwrite/functions/backend/main.py, or set UTHMHUB_SRC_DIR."
    )

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from uthmhub.config.settings import settings
from uthmhub.core.gpa import calculate_cgpa, calculate_gpa, cgpa_trend, total_credits
from uthmhub.core.grading import GRADING_SCALE
from uthmhub.core.predictor import (
    PlannedSubject,
    calculate_final_exam_score,
    calculate_min_grades,
    calculate_required_gpa,
)
from uthmhub.core.transcript import parse_transcript_text
from uthmhub.models.entities import Semester, Subject, new_id
from uthmhub.services.appwrite_service import AppwriteService, AppwriteServiceError


LOCAL_REGEX = r"^https?:\/\/(localhost|127\.0\.0\.1)(:\d+)?$"


class HttpError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def _headers(req: Any) -> Dict[str, str]:
    raw_headers = getattr(req, "headers", {}) or {}
    return {str(key).lower(): str(value) for key, value in raw_headers.items()}


def _normalize_path(req: Any) -> str:
    path = str(getattr(req, "path", "") or "/")
    if not path.startswith("/"):
        path = f"/{path}"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def _cors_headers(req: Any) -> Dict[str, str]:
    origin = _headers(req).get("origin", "")
    if not origin:
        return {}

    if origin in settings.cors_allowed_origins:
        allowed_origin = origin
    else:
        regex = settings.cors_allow_origin_regex or LOCAL_REGEX
        allowed_origin = origin if re.match(regex, origin) else ""

    if not allowed_origin:
        return {}

    return {
        "access-control-allow-origin": allowed_origin,
        "access-control-allow-credentials": "true",
        "access-control-allow-methods": "GET,POST,OPTIONS",
        "access-control-allow-headers": "Content-Type,Authorization",
        "vary": "Origin",
    }


def _json_response(context: Any, payload: Any, status_code: int = 200, req: Any = None):
    headers = _cors_headers(req) if req is not None else {}
    return context.res.json(payload, status_code, headers)


def _empty_response(context: Any, status_code: int = 204, req: Any = None):
    headers = _cors_headers(req) if req is not None else {}
    return context.res.empty(status_code, headers)


def _parse_body(req: Any) -> Dict[str, Any]:
    def _from_candidate(candidate: Any) -> Optional[Dict[str, Any]]:
        if candidate is None:
            return None

        if isinstance(candidate, (bytes, bytearray)):
            candidate = candidate.decode("utf-8", errors="ignore")

        if isinstance(candidate, str):
            text = candidate.strip()
            if not text:
                return None
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                parsed_qs = parse_qs(text, keep_blank_values=True)
                if parsed_qs:
                    return {k: (v[-1] if isinstance(v, list) and v else "") for k, v in parsed_qs.items()}
                return None
            candidate = parsed

        if isinstance(candidate, dict):
            return candidate

        return None

    for attr in ("bodyJson", "body", "bodyText", "bodyRaw"):
        parsed = _from_candidate(getattr(req, attr, None))
        if parsed is not None:
            return parsed

    return {}


def _number(payload: Dict[str, Any], field_name: str) -> float:
    value = payload.get(field_name)
    if isinstance(value, bool):
        raise HttpError(400, f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise HttpError(400, f"{field_name} must be a number") from exc
    if not math.isfinite(number):
        raise HttpError(400, f"{field_name} must be a finite number")
    return number


def _integer(payload: Dict[str, Any], field_name: str) -> int:
    value = payload.get(field_name)
    if isinstance(value, bool):
        raise HttpError(400, f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    # JSON clients may send 60.0 for 60.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise HttpError(400, f"{field_name} must be an integer")


def _subject_from_payload(item: Any, label: str) -> Subject:
    if not isinstance(item, dict):
        raise HttpError(400, f"{label} must be an object")
    credit_hour = _integer(item, "credit_hour")
    code = str(item.get("code", "")).strip() or "SUB"
    name = str(item.get("name", "")).strip() or "Subject"
    if item.get("marks") is not None:
        return Subject.from_marks(code, name, credit_hour, _number(item, "marks"))
    return Subject.from_grade(code, name, credit_hour, str(item.get("grade", "")))


def _subjects_from_payload(value: Any, label: str) -> List[Subject]:
    if not isinstance(value, list):
        raise HttpError(400, f"{label} must be an array")
    return [_subject_from_payload(item, f"{label}[{idx}]") for idx, item in enumerate(value)]


def _grading_scale(_: Any) -> List[Dict[str, Any]]:
    return [
        {
            "min_mark": entry.min_mark,
            "max_mark": entry.max_mark,
            "grade": entry.grade,
            "point_value": entry.point_value,
        }
        for entry in GRADING_SCALE
    ]


def _gpa(req: Any) -> Dict[str, Any]:
    subjects = _subjects_from_payload(_parse_body(req).get("subjects"), "subjects")
    return {
        "gpa": calculate_gpa(subjects),
        "credits": sum(s.credit_hour for s in subjects),
        "subjects": [s.to_dict() for s in subjects],
    }


def _cgpa(req: Any) -> Dict[str, Any]:
    semesters_payload = _parse_body(req).get("semesters")
    if not isinstance(semesters_payload, list):
        raise HttpError(400, "semesters must be an array")

    semesters: List[Semester] = []
    for idx, sem in enumerate(semesters_payload):
        if not isinstance(sem, dict):
            raise HttpError(400, f"semesters[{idx}] must be an object")
        semesters.append(
            Semester(
                id=str(sem.get("id") or new_id()),
                name=str(sem.get("name") or f"Semester {idx + 1}"),
                subjects=_subjects_from_payload(sem.get("subjects"), f"semesters[{idx}].subjects"),
            )
        )

    return {
        "cgpa": calculate_cgpa(semesters),
        "total_credits": total_credits(semesters),
        "trend": [
            {"name": name, "gpa": gpa, "cgpa": cgpa} for name, gpa, cgpa in cgpa_trend(semesters)
        ],
    }


def _required_gpa(req: Any) -> Dict[str, Any]:
    payload = _parse_body(req)
    result = calculate_required_gpa(
        _number(payload, "current_cgpa"),
        _integer(payload, "completed_credits"),
        _number(payload, "target_cgpa"),
        _integer(payload, "next_credits"),
    )
    return {"required_gpa": result.result, "achievable": result.achievable, "message": result.message}


def _min_grades(req: Any) -> List[Dict[str, Any]]:
    payload = _parse_body(req)
    target_gpa = _number(payload, "target_gpa")
    subjects_payload = payload.get("subjects")
    if not isinstance(subjects_payload, list):
        raise HttpError(400, "subjects must be an array")

    planned: List[PlannedSubject] = []
    for idx, item in enumerate(subjects_payload):
        if not isinstance(item, dict):
            raise HttpError(400, f"subjects[{idx}] must be an object")
        planned.append(
            PlannedSubject(
                code=str(item.get("code", "")),
                name=str(item.get("name", "")),
                credit_hour=_integer(item, "credit_hour"),
            )
        )

    return [
        {
            "code": row.code,
            "name": row.name,
            "credit_hour": row.credit_hour,
            "min_grade": row.min_grade,
            "min_point": row.min_point,
        }
        for row in calculate_min_grades(target_gpa, planned)
    ]


def _final_exam(req: Any) -> Dict[str, Any]:
    payload = _parse_body(req)
    target_grade = payload.get("target_grade")
    if not isinstance(target_grade, str):
        raise HttpError(400, "target_grade must be a string")
    result = calculate_final_exam_score(
        _number(payload, "carry_mark"),
        _number(payload, "carry_weight"),
        target_grade,
    )
    return {"required_score": result.result, "achievable": result.achievable, "message": result.message}


def _parse_transcript(req: Any) -> Dict[str, Any]:
    text = _parse_body(req).get("text")
    if not isinstance(text, str):
        raise HttpError(400, "text must be a string")
    subjects = parse_transcript_text(text)
    return {
        "subjects": [s.to_dict() for s in subjects],
        "gpa": calculate_gpa(subjects),
    }


def _leaderboard(req: Any) -> Any:
    raw_limit = (getattr(req, "query", {}) or {}).get("limit", 20)
    try:
        limit = max(1, min(100, int(raw_limit)))
    except (TypeError, ValueError) as exc:
        raise HttpError(400, "limit must be an integer") from exc

    try:
        return AppwriteService.from_settings().leaderboard(limit)
    except AppwriteServiceError as exc:
        raise HttpError(503, str(exc)) from exc


ROUTES = {
    ("GET", "/grades/scale"): _grading_scale,
    ("POST", "/gpa"): _gpa,
    ("POST", "/cgpa"): _cgpa,
    ("POST", "/predict/required-gpa"): _required_gpa,
    ("POST", "/predict/min-grades"): _min_grades,
    ("POST", "/predict/final-exam"): _final_exam,
    ("POST", "/transcript/parse"): _parse_transcript,
    ("GET", "/leaderboard"): _leaderboard,
}


def _route(context: Any, req: Any):
    method = str(getattr(req, "method", "GET") or "GET").upper()
    path = _normalize_path(req)

    if method == "OPTIONS":
        return _empty_response(context, 204, req=req)

    if method == "GET" and path == "/health":
        return _json_response(context, {"status": "ok"}, req=req)

    handler = ROUTES.get((method, path))
    if handler is None:
        raise HttpError(404, "Not found")
    return _json_response(context, handler(req), req=req)


def main(context: Any):
    req = context.req

    try:
        return _route(context, req)
    except HttpError as exc:
        return _json_response(context, {"detail": exc.detail}, status_code=exc.status_code, req=req)
    except Exception as exc:
        if os.getenv("APPWRITE_FUNCTION_DEBUG", "false").lower() == "true":
            context.error(str(exc))
            return _json_response(context, {"detail": str(exc)}, status_code=500, req=req)

        context.error("Unhandled exception in backend function")
        return _json_response(context, {"detail": "INTERNAL_SERVER_ERROR"}, status_code=500, req=req)
