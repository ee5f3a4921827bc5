# apps/core/persistence.py
import logging
from contextlib import contextmanager

from django.db import IntegrityError, InterfaceError, OperationalError

from apps.core import errors

logger = logging.getLogger(__name__)


@contextmanager
def collaborator_call(name: str = "persistence"):
    """
    Turns store timeouts and connection failures into CollaboratorUnavailable.

    The timeout itself is enforced by the database connection options
    (COMPLIANCE_PERSISTENCE_TIMEOUT). IntegrityError passes through untouched
    because callers such as the code allocator react to it.
    """
    try:
        yield
    except IntegrityError:
        raise
    except (OperationalError, InterfaceError) as exc:
        logger.warning("%s call failed: %s", name, exc)
        raise errors.CollaboratorUnavailable(name, str(exc)) from exc
