from __future__ import annotations

from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from panopto_upload.exceptions import ServiceCallFailed

ModelT = TypeVar("ModelT", bound=BaseModel)


def check_response_status(response: httpx.Response, expected_status: int) -> None:
    if response.status_code != expected_status:
        raise ServiceCallFailed(response.status_code, response.text)


def parse_body(response: httpx.Response, model: Type[ModelT]) -> ModelT:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise ServiceCallFailed(response.status_code, response.text) from exc


def json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise ServiceCallFailed(response.status_code, response.text) from exc
    if not isinstance(body, dict):
        raise ServiceCallFailed(response.status_code, response.text)
    return body
