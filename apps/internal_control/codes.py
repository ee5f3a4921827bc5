# apps/internal_control/codes.py
"""
Human-readable sequential codes (CTRL-2025-003, EP-014, ...).

Allocation reads the highest sequence already handed out in the scope and
inserts the next one into the CodeAllocation ledger. Two writers that read the
same maximum collide on the ledger's unique constraint; the loser re-reads and
tries again, up to COMPLIANCE_CODE_MAX_ATTEMPTS times.
"""
import logging
from dataclasses import dataclass, replace

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from apps.core import errors
from apps.core.persistence import collaborator_call
from apps.internal_control.models import CodeAllocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeScheme:
    prefix: str
    year_scoped: bool = True
    width: int = 3

    def format(self, year: int, sequence: int) -> str:
        number = str(sequence).zfill(self.width)
        if self.year_scoped:
            return f"{self.prefix}-{year}-{number}"
        return f"{self.prefix}-{number}"

    def scope_key(self, plan_id, year):
        """(plan_id, year) as stored in the ledger; organization-wide schemes collapse both."""
        if self.year_scoped:
            return str(plan_id or ""), int(year)
        return "", 0


DEFAULT_SCHEMES = {
    "action_plan": CodeScheme("EP", year_scoped=False),
    "control": CodeScheme("CTRL"),
    "control_test": CodeScheme("TEST"),
    "finding": CodeScheme("FND"),
    "capa": CodeScheme("CAPA"),
}


def get_scheme(record_type: str) -> CodeScheme:
    try:
        scheme = DEFAULT_SCHEMES[record_type]
    except KeyError:
        raise errors.ValidationError({"record_type": f"No code scheme for '{record_type}'."})
    overrides = getattr(settings, "COMPLIANCE_CODE_SCHEMES", {}).get(record_type)
    return replace(scheme, **overrides) if overrides else scheme


def current_max(record_type, organization_id, plan_id, year) -> int:
    return CodeAllocation.objects.filter(
        organization_id=organization_id, plan_id=plan_id, record_type=record_type, year=year,
    ).aggregate(m=Max("sequence"))["m"] or 0


def allocate(record_type: str, organization_id: str, plan_id=None, year=None) -> str:
    scheme = get_scheme(record_type)
    year = int(year or timezone.localdate().year)
    scope_plan, scope_year = scheme.scope_key(plan_id, year)
    max_attempts = max(1, int(getattr(settings, "COMPLIANCE_CODE_MAX_ATTEMPTS", 5)))

    with collaborator_call():
        for attempt in range(1, max_attempts + 1):
            sequence = current_max(record_type, organization_id, scope_plan, scope_year) + 1
            code = scheme.format(year, sequence)
            try:
                with transaction.atomic():
                    CodeAllocation.objects.create(
                        organization_id=organization_id,
                        plan_id=scope_plan,
                        record_type=record_type,
                        year=scope_year,
                        sequence=sequence,
                        code=code,
                    )
            except IntegrityError:
                logger.info("Code %s already taken (attempt %d/%d), retrying", code, attempt, max_attempts)
                continue
            logger.debug("Allocated %s for %s/%s", code, organization_id, scope_plan or "*")
            return code

    logger.warning("Code allocation for %s exhausted after %d attempts", record_type, max_attempts)
    raise errors.CodeAllocationExhausted(record_type, max_attempts)


def allocate_unused(record_type: str, records, code_field: str, organization_id: str, plan_id=None) -> str:
    """
    Allocates a code that is also free in ``records``, the queryset holding the
    record table's own unique constraint. Codes written outside the ledger
    (admin edits, imported rows) are skipped; each allocate() call moves the
    ledger past them.
    """
    max_attempts = max(1, int(getattr(settings, "COMPLIANCE_CODE_MAX_ATTEMPTS", 5)))
    for attempt in range(1, max_attempts + 1):
        code = allocate(record_type, organization_id, plan_id)
        with collaborator_call():
            taken = records.filter(**{code_field: code}).exists()
        if not taken:
            return code
        logger.info("Code %s already used by a record (attempt %d/%d)", code, attempt, max_attempts)
    logger.warning("Code assignment for %s exhausted after %d attempts", record_type, max_attempts)
    raise errors.CodeAllocationExhausted(record_type, max_attempts)
