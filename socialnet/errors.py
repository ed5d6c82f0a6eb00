"""Error types raised by the crud layer and the handlers that render them."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger('socialnet')


class NotFoundError(Exception):
    """An identifier did not resolve to a stored entity."""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f'{entity} not found')


class InvalidRequestError(Exception):
    """A well-formed request asks for something the data model forbids."""


async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={'message': str(exc)})


async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(status_code=400, content={'message': str(exc)})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={'message': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


async def validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({'message': 'Validation failed', 'errors': exc.errors()}),
    )


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    key_value = (exc.details or {}).get('keyValue') or {}
    field = next(iter(key_value), 'value')
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({'message': f'{field} already taken', 'keyValue': key_value}),
    )


async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error({'msg': 'store_failure', 'path': request.url.path, 'error': str(exc)})
    return JSONResponse(status_code=500, content={'message': str(exc)})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
