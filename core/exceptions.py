# core/exceptions.py
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Erreur métier qui interrompt la requête entière, sans mutation."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request failed."

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."


def api_exception_handler(exc, context):
    """
    EXCEPTION_HANDLER de DRF:
      - DomainError -> {"detail": ...} avec son status_code
      - le reste -> handler DRF par défaut
    """
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.warning(
            "%s in %s: %s",
            exc.__class__.__name__,
            view.__class__.__name__ if view else "-",
            exc.detail,
        )
        return Response({"detail": exc.detail}, status=exc.status_code)

    return exception_handler(exc, context)
