# apps/standards/scopes.py
"""
Who a taxonomy node or action applies to.

The store keeps a boolean "all units" flag next to a list of unit ids; callers
work with the sum type below so the ids are never consulted once the flag is set.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Everyone:
    def includes(self, unit_id: str) -> bool:
        return True

    def as_fields(self):
        return True, []


@dataclass(frozen=True)
class SpecificUnits:
    unit_ids: frozenset = frozenset()

    def includes(self, unit_id: str) -> bool:
        return unit_id in self.unit_ids

    def as_fields(self):
        return False, sorted(self.unit_ids)


def scope_from_fields(all_units: bool, unit_ids) -> "Everyone | SpecificUnits":
    if all_units:
        return Everyone()
    return SpecificUnits(frozenset(u for u in (unit_ids or []) if u))


def scope_matches(scope, unit_id) -> bool:
    """A missing filter value matches every scope."""
    if not unit_id:
        return True
    return scope.includes(str(unit_id))
