import uuid

from fastapi import Request

REQUEST_ID_HEADER = "X-Request-ID"


def resolve_request_id(request: Request) -> str:
    """Return the request's correlation id, creating one if needed.

    The id is taken from the ``X-Request-ID`` header when the caller sent
    one, otherwise generated, and cached on ``request.state``.
    """
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
    return request_id


async def get_request_id(request: Request) -> str:
    """FastAPI dependency exposing the correlation id to route handlers."""
    return resolve_request_id(request)
