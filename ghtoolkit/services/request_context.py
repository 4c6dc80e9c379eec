"""GitHub request ID correlation via contextvars."""

from __future__ import annotations

from contextvars import ContextVar
from typing import Mapping

GITHUB_REQUEST_ID_HEADER = "x-github-request-id"

request_id_var: ContextVar[str] = ContextVar("github_request_id", default="")


def get_request_id() -> str:
    """Read the current GitHub request ID from the contextvar."""
    return request_id_var.get()


def record_request_id(headers: Mapping[str, str]) -> str:
    """Store the ``X-GitHub-Request-Id`` of a response, if it carries one.

    Returns the stored ID, or the previous one when the header is absent.
    """
    for key, value in headers.items():
        if key.lower() == GITHUB_REQUEST_ID_HEADER and value:
            request_id_var.set(value)
            return value
    return request_id_var.get()
