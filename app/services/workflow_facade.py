from __future__ import annotations

from fastapi.responses import JSONResponse

from errors import CONCURRENT_MODIFICATION, INVALID_INPUT, NOT_FOUND_CODES, MedicalWorkflowError


def _status_for(code: str) -> int:
    if code in NOT_FOUND_CODES:
        return 404
    if code == CONCURRENT_MODIFICATION:
        return 409
    return 400


def _workflow_error_response(error: MedicalWorkflowError) -> JSONResponse:
    payload = {
        "ok": False,
        "error": {
            "code": error.code,
            "message": error.message,
            "details": error.details,
        },
    }
    return JSONResponse(status_code=_status_for(error.code), content=payload)


def _invalid_input_response(error: ValueError) -> JSONResponse:
    return _workflow_error_response(MedicalWorkflowError(INVALID_INPUT, str(error)))
