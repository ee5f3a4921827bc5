# apps/core/errors.py
"""
Domain errors raised by the compliance engine.

Every error carries an HTTP status and a ``retryable`` flag so callers (and the
REST layer) can decide whether to try again without inspecting the type.
"""


class ComplianceError(Exception):
    status_code = 400
    retryable = False
    code = "compliance_error"

    def as_dict(self) -> dict:
        return {"error": self.code, "detail": str(self), "retryable": self.retryable}


class ValidationError(ComplianceError):
    """Lists every invalid or missing field at once."""

    code = "validation_error"

    def __init__(self, fields: dict):
        self.fields = {name: str(msg) for name, msg in fields.items()}
        names = ", ".join(sorted(self.fields))
        super().__init__(f"Invalid fields: {names}")

    def as_dict(self) -> dict:
        data = super().as_dict()
        data["fields"] = self.fields
        return data


class DependencyConflict(ComplianceError):
    status_code = 409
    code = "dependency_conflict"

    def __init__(self, record_type: str, count: int, target: str = ""):
        self.record_type = record_type
        self.count = count
        suffix = f" {target}" if target else ""
        super().__init__(f"Cannot delete{suffix}: referenced by {count} {record_type} record(s)")

    def as_dict(self) -> dict:
        data = super().as_dict()
        data.update(record_type=self.record_type, count=self.count)
        return data


class CodeAllocationExhausted(ComplianceError):
    status_code = 503
    retryable = True
    code = "code_allocation_exhausted"

    def __init__(self, record_type: str, attempts: int):
        self.record_type = record_type
        self.attempts = attempts
        super().__init__(f"Could not allocate a {record_type} code after {attempts} attempts")


class CollaboratorUnavailable(ComplianceError):
    status_code = 503
    retryable = True
    code = "collaborator_unavailable"

    def __init__(self, collaborator: str, reason: str = ""):
        self.collaborator = collaborator
        super().__init__(f"{collaborator} unavailable: {reason}" if reason else f"{collaborator} unavailable")


class AuthorizationDenied(ComplianceError):
    status_code = 403
    code = "authorization_denied"


class NotFound(ComplianceError):
    status_code = 404
    code = "not_found"

    def __init__(self, record_type: str, pk):
        self.record_type = record_type
        self.pk = pk
        super().__init__(f"{record_type} {pk} not found")
