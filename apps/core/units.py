# apps/core/units.py
from django.conf import settings
from django.utils.module_loading import import_string


def passthrough_resolver(unit_ids):
    return {uid: uid for uid in unit_ids}


def resolve_unit_names(unit_ids) -> dict:
    """Maps opaque unit ids to display names through COMPLIANCE_UNIT_RESOLVER."""
    ids = sorted({u for u in unit_ids if u})
    if not ids:
        return {}
    resolver = import_string(getattr(settings, "COMPLIANCE_UNIT_RESOLVER", "apps.core.units.passthrough_resolver"))
    names = resolver(ids) or {}
    return {uid: names.get(uid, uid) for uid in ids}
