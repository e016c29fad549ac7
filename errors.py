from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class MedicalWorkflowError(Exception):
    """Structured error for targeted medical workflow operations.

    The server layer maps these to HTTP 4xx while keeping a stable
    machine-readable code for clients.
    """

    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


# Error codes (stable API surface)
INJURY_NOT_FOUND = "INJURY_NOT_FOUND"
PROTOCOL_NOT_FOUND = "PROTOCOL_NOT_FOUND"
PROTOCOL_TEMPLATE_NOT_FOUND = "PROTOCOL_TEMPLATE_NOT_FOUND"
PROTOCOL_CLOSED = "PROTOCOL_CLOSED"
INVALID_PHASE_TRANSITION = "INVALID_PHASE_TRANSITION"
NO_ASSESSMENT_AVAILABLE = "NO_ASSESSMENT_AVAILABLE"
CLEARANCE_NOT_SUPPORTED = "CLEARANCE_NOT_SUPPORTED"
CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
INVALID_INPUT = "INVALID_INPUT"

NOT_FOUND_CODES = frozenset({INJURY_NOT_FOUND, PROTOCOL_NOT_FOUND, PROTOCOL_TEMPLATE_NOT_FOUND})
