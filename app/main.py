from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import config
import state
from errors import MedicalWorkflowError
from medical_repo import init_db
from app.api.router import api_router
from app.services.workflow_facade import _invalid_input_response, _workflow_error_response

logger = logging.getLogger(__name__)

app = FastAPI(title="Medical Compliance & Return-to-Play")


@app.on_event("startup")
def _startup_init_db() -> None:
    # 1) db_path from environment (no default)
    # 2) schema init/migrate once per process
    db_path = os.environ.get(config.DB_PATH_ENV)
    if not db_path:
        raise RuntimeError(f"{config.DB_PATH_ENV} is required (no default db_path).")
    state.set_db_path(db_path)

    try:
        init_db(db_path)
    except Exception as e:
        raise RuntimeError(f"init_db() failed during startup: {e}") from e
    logger.info("medical db ready db_path=%s", db_path)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MedicalWorkflowError)
async def _workflow_error_handler(request: Request, exc: MedicalWorkflowError):
    return _workflow_error_response(exc)


@app.exception_handler(ValueError)
async def _value_error_handler(request: Request, exc: ValueError):
    return _invalid_input_response(exc)


app.include_router(api_router)
