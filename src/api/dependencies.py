"""FastAPI dependencies for injection."""
from typing import Any, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from core.body_parser import parse_body
from core.config import get_settings
from db.session import get_async_session

SchemaT = TypeVar("SchemaT", bound=BaseModel)


async def parse_request_body(request: Request) -> Any:
    """
    Dependency that parses the request body once per request.

    Registered app-wide so it runs ahead of every route handler. The parsed
    payload is stored on request.state.body; handlers that declare this
    dependency receive the same cached value.
    """
    body = await parse_body(request, request.app.state.settings.max_body_bytes)
    request.state.body = body
    return body


def validate_body(schema: type[SchemaT], body: Any) -> SchemaT:
    """
    Validate a parsed body against a schema.

    Raises RequestValidationError so failures get FastAPI's standard 422 response.
    """
    try:
        return schema.model_validate(body)
    except ValidationError as e:
        errors = [
            {**error, "loc": ("body", *error["loc"])}
            for error in e.errors(include_url=False)
        ]
        raise RequestValidationError(errors) from e


__all__ = [
    "get_async_session",
    "get_settings",
    "parse_request_body",
    "validate_body",
]
