# apps/core/services.py
import logging
from dataclasses import dataclass, field

from django.core.exceptions import FieldDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.core import errors
from apps.core.identity import MANAGER_ROLES, Actor, require_role
from apps.core.models import StatusChange
from apps.core.persistence import collaborator_call

logger = logging.getLogger(__name__)


# ========================
# Helpers
# ========================

def is_empty(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_scoped_model(model) -> bool:
    names = {f.name for f in model._meta.get_fields()}
    return "organization_id" in names and "plan_id" in names


@dataclass
class Outcome:
    """A successful write plus any non-fatal warnings raised after it."""
    record: object
    warnings: list = field(default_factory=list)


def record_history(actor: Actor, instance, record_type: str, field_name: str, old, new, comment: str = ""):
    StatusChange.objects.create(
        organization_id=getattr(instance, "organization_id", "") or actor.organization_id,
        plan_id=getattr(instance, "plan_id", "") or "",
        record_type=record_type,
        record_id=str(instance.pk),
        field=field_name,
        old_value=old or "",
        new_value=new or "",
        changed_by=actor.user_id,
        comment=comment or "",
    )


# ========================
# Base service
# ========================

class RecordService:
    """
    create / update / delete / get / list for one model.

    Subclasses declare which payload keys are writable (``fields``), which are
    accepted only on create, which are mandatory, which lookups ``list`` accepts
    and which reverse relations block a delete. Payload keys ending in ``_id``
    that name a foreign key are resolved inside the caller's organization and
    plan; an id outside that scope is reported as NotFound.
    """

    model = None
    record_type = ""
    scoped = True
    write_roles = MANAGER_ROLES
    fields = ()
    create_only_fields = ()
    required_fields = ()
    filter_fields = ()
    history_fields = ()
    dependents = ()
    ordering = ("id",)
    code_field = None
    # Payload name -> model field, for fields whose column name differs from the API name.
    field_aliases = {}

    def __init__(self, actor: Actor, plan_id=None):
        if self.scoped and is_empty(plan_id):
            raise errors.ValidationError({"plan_id": "This field is required."})
        self.actor = actor
        self.plan_id = str(plan_id) if plan_id else ""

    # ---- reads ----

    def queryset(self):
        qs = self.model.objects.all()
        if self.scoped:
            qs = qs.filter(organization_id=self.actor.organization_id, plan_id=self.plan_id)
        return qs.order_by(*self.ordering)

    def get(self, pk):
        with collaborator_call():
            try:
                return self.queryset().get(pk=pk)
            except (self.model.DoesNotExist, ValueError, TypeError):
                raise errors.NotFound(self.record_type, pk)

    def list(self, **filters):
        filters = {self._filter_name(k): v for k, v in filters.items()}
        unknown = set(filters) - set(self.filter_fields)
        if unknown:
            raise errors.ValidationError({name: "Unknown filter." for name in unknown})
        lookups = {k: v for k, v in filters.items() if not is_empty(v)}
        with collaborator_call():
            return list(self.queryset().filter(**lookups))

    # ---- writes ----

    def create(self, data: dict):
        require_role(self.actor, self.write_roles, f"create {self.record_type}")
        with collaborator_call():
            instance = self.model()
            if self.scoped:
                instance.organization_id = self.actor.organization_id
                instance.plan_id = self.plan_id
            problems = self._assign(instance, data, self.fields + self.create_only_fields)
            self.prepare(instance, creating=True)
            self._validate(instance, problems)
            with transaction.atomic():
                self.assign_code(instance)
                instance.save()
                self.after_save(instance, created=True, previous={})
        logger.info("%s %s created by %s", self.record_type, instance.pk, self.actor.user_id)
        return instance

    def update(self, pk, data: dict):
        require_role(self.actor, self.write_roles, f"edit {self.record_type}")
        with collaborator_call():
            instance = self.get(pk)
            previous = {name: getattr(instance, name) for name in self.history_fields}
            problems = self._assign(instance, data, self.fields)
            self.prepare(instance, creating=False)
            self._validate(instance, problems)
            with transaction.atomic():
                instance.save()
                self.after_save(instance, created=False, previous=previous)
        logger.info("%s %s updated by %s", self.record_type, instance.pk, self.actor.user_id)
        return instance

    def delete(self, pk):
        require_role(self.actor, self.write_roles, f"delete {self.record_type}")
        with collaborator_call():
            instance = self.get(pk)
            for label, count in self.dependent_counts(instance):
                if count:
                    logger.info("Refusing to delete %s %s: %d %s", self.record_type, pk, count, label)
                    raise errors.DependencyConflict(label, count, f"{self.record_type} {pk}")
            with transaction.atomic():
                self.before_delete(instance)
                instance.delete()
        logger.info("%s %s deleted by %s", self.record_type, pk, self.actor.user_id)

    # ---- hooks ----

    def prepare(self, instance, creating: bool):
        """Derives fields from other fields before validation."""

    def clean_record(self, instance) -> dict:
        """Cross-field checks; returns {field: message}."""
        return {}

    def assign_code(self, instance):
        """Allocates the human-readable code, if the record has one."""

    def after_save(self, instance, created: bool, previous: dict):
        for name in self.history_fields:
            old = previous.get(name)
            new = getattr(instance, name)
            if created or old != new:
                record_history(self.actor, instance, self.record_type, name, old, new)

    def before_delete(self, instance):
        pass

    def dependent_counts(self, instance):
        for label, relation in self.dependents:
            yield label, getattr(instance, relation).count()

    # ---- internals ----

    def _relation(self, name):
        if not name.endswith("_id"):
            return None
        try:
            f = self.model._meta.get_field(name[:-3])
        except FieldDoesNotExist:
            return None
        return f if f.is_relation and f.many_to_one else None

    def _resolve(self, relation, pk):
        if is_empty(pk):
            return None
        related = relation.related_model
        qs = related.objects.all()
        if is_scoped_model(related):
            qs = qs.filter(organization_id=self.actor.organization_id, plan_id=self.plan_id)
        try:
            return qs.get(pk=pk)
        except (related.DoesNotExist, ValueError, TypeError):
            raise errors.NotFound(related.__name__, pk)

    def _assign(self, instance, data, allowed) -> dict:
        problems = {}
        for key, value in (data or {}).items():
            name = self.field_aliases.get(key, key)
            if name not in allowed:
                problems[key] = "Unknown or read-only field."
                continue
            relation = self._relation(name)
            if relation is not None:
                setattr(instance, relation.name, self._resolve(relation, value))
            else:
                setattr(instance, name, value)
        return problems

    def _validate(self, instance, problems: dict):
        for name in self.required_fields:
            if is_empty(getattr(instance, name, None)):
                problems.setdefault(name, "This field is required.")
        for name, message in self.clean_record(instance).items():
            problems.setdefault(name, message)
        exclude = [self.code_field] if self.code_field else []
        try:
            instance.full_clean(exclude=exclude)
        except DjangoValidationError as exc:
            for name, messages in exc.message_dict.items():
                problems.setdefault(self._payload_name(name), " ".join(messages))
        if problems:
            raise errors.ValidationError(problems)

    def _filter_name(self, name):
        name = self.field_aliases.get(name, name)
        relation = self._relation(name)
        return relation.name if relation is not None else name

    def _payload_name(self, name):
        for alias, field_name in self.field_aliases.items():
            if field_name == name:
                return alias
        try:
            f = self.model._meta.get_field(name)
        except FieldDoesNotExist:
            return name
        return f.attname if f.is_relation else name
