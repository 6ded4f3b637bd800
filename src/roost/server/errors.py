"""Error mapping for dispatched requests.

Failures other than ``RESTResponse`` become a bare status: the category
table in ``roost.errors`` picks the code, the raised exception is
logged and never exposed to the caller.
"""

import logging

from roost.config import RoostConfig
from roost.errors import HTTPError, status_for
from roost.http.request import Request
from roost.http.response import Response

logger = logging.getLogger("roost.server")


def handle_error(exc: BaseException, request: Request, config: RoostConfig) -> Response:
    """Map a raised failure to a bodiless response with the mapped status.

    ``HTTPError`` headers (e.g. ``Allow``) are kept. In debug mode the
    detail of an ``HTTPError`` is returned as a text body.
    """
    status = status_for(exc)
    if status >= 500:
        logger.error("%d %s %s", status, request.method, request.path, exc_info=exc)
    else:
        logger.warning("%d %s %s: %s", status, request.method, request.path, exc)

    response = Response(status=status)
    if isinstance(exc, HTTPError):
        response = response.with_headers(exc.headers)
        if config.debug and exc.detail:
            response = response.with_body(exc.detail.encode("utf-8")).with_content_type(
                "text/plain; charset=utf-8"
            )
    return response
