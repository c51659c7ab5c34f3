"""
Exception handlers.

Renders every failure as ``{"error_type": ..., "error": ...}`` so clients
can branch on a stable code: ``inputerror`` and ``conflict`` become inline
form errors, ``unauthorized`` forces a logout, ``accessdenied`` shows a
permission toast and ``notfound`` a generic "not available" state.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ridein.domain.errors import RideInError

logger = logging.getLogger(__name__)


async def ridein_error_handler(request: Request, exc: RideInError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "error_type": "inputerror",
            "error": f"{field}: {message}" if field else message,
            "details": jsonable_encoder(errors),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RideInError, ridein_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
