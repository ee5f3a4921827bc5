# apps/core/identity.py
from dataclasses import dataclass

from apps.core import errors
from apps.core.models import Profile
from apps.core.persistence import collaborator_call

MANAGER_ROLES = frozenset({Profile.ROLE_ADMIN, Profile.ROLE_VICE_PRESIDENT, Profile.ROLE_IC_COORDINATOR})
TAXONOMY_ROLES = frozenset({Profile.ROLE_ADMIN})


@dataclass(frozen=True)
class Actor:
    user_id: str
    display_name: str
    role: str
    organization_id: str
    department_id: str = ""

    @property
    def can_manage(self) -> bool:
        return self.role in MANAGER_ROLES

    @property
    def can_edit_taxonomy(self) -> bool:
        return self.role in TAXONOMY_ROLES


def require_role(actor: Actor, roles, action: str):
    if actor.role not in roles:
        raise errors.AuthorizationDenied(f"Role '{actor.role}' may not {action}")


def require_manager(actor: Actor, action: str):
    require_role(actor, MANAGER_ROLES, action)


def actor_from_user(user) -> Actor:
    """Builds the acting identity from an authenticated Django user."""
    if user is None or not user.is_authenticated:
        raise errors.AuthorizationDenied("Authentication required")
    try:
        with collaborator_call("identity"):
            profile = user.compliance_profile
    except Profile.DoesNotExist:
        raise errors.AuthorizationDenied("User has no compliance profile")
    return Actor(
        user_id=str(user.pk),
        display_name=profile.display_name or user.get_full_name() or user.get_username(),
        role=profile.role,
        organization_id=profile.organization_id,
        department_id=profile.department_id,
    )
