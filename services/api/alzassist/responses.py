from __future__ import annotations
from typing import Any
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from alzassist.schemas import Envelope, ErrorEnvelope

def ok(data: Any = None, status_code: int = 200) -> JSONResponse:
    body = Envelope(success=True, data=jsonable_encoder(data, by_alias=True))
    return JSONResponse(status_code=status_code, content=body.model_dump())

def created(data: Any) -> JSONResponse:
    return ok(data, status_code=201)

def fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorEnvelope(error=message).model_dump())
