import json
from pathlib import Path
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from apps.standards.models import Action, Category, MainStandard, SubStandard, SubStandardStatus


class DryRun(Exception):
    pass


class Command(BaseCommand):
    help = (
        "Imports categories, main standards and sub-standards from JSON. "
        "Ex: import_standards taxonomy.json --prune"
    )

    def add_arguments(self, parser):
        parser.add_argument("json_path", help="Path to the taxonomy JSON")
        parser.add_argument("--prune", action="store_true",
                            help="Deletes main/sub-standards missing from the file (unless in use)")
        parser.add_argument("--dry-run", action="store_true",
                            help="Saves nothing (transaction rolled back)")

    def handle(self, json_path, prune=False, dry_run=False, **kwargs):
        p = Path(json_path)
        if not p.exists():
            raise CommandError(f"File not found: {p}")

        # UTF-8 with or without BOM
        data = json.loads(p.read_text(encoding="utf-8-sig"))

        counts = {"categories": 0, "main_standards": 0, "sub_standards": 0, "pruned": 0, "kept": 0}

        def _prune(qs, lookup):
            for node in qs:
                in_use = (
                    Action.objects.filter(**{lookup: node}).exists()
                    or SubStandardStatus.objects.filter(**{lookup: node}).exists()
                )
                if in_use:
                    counts["kept"] += 1
                    self.stderr.write(self.style.WARNING(f"Kept {node.code}: referenced by organization data"))
                    continue
                node.delete()
                counts["pruned"] += 1

        @transaction.atomic
        def _do_import():
            for c_order, c in enumerate(data.get("categories", []), start=1):
                cat, _ = Category.objects.update_or_create(
                    code=c["code"],
                    defaults={
                        "name": c.get("name", c["code"]),
                        "description": c.get("description", ""),
                        "order": c.get("order", c_order),
                    },
                )
                counts["categories"] += 1
                seen_ms = set()

                for m_order, m in enumerate(c.get("main_standards", []), start=1):
                    ms, _ = MainStandard.objects.update_or_create(
                        category=cat,
                        code=m["code"],
                        defaults={
                            "title": m.get("title", m["code"]),
                            "description": m.get("description", ""),
                            "responsible_units": m.get("responsible_units", []),
                            "collaborating_units": m.get("collaborating_units", []),
                            "all_units_responsible": bool(m.get("all_units_responsible", False)),
                            "all_units_collaborating": bool(m.get("all_units_collaborating", False)),
                            "order": m.get("order", m_order),
                        },
                    )
                    counts["main_standards"] += 1
                    seen_ms.add(ms.code)
                    seen_ss = set()

                    for s_order, s in enumerate(m.get("sub_standards", []), start=1):
                        SubStandard.objects.update_or_create(
                            main_standard=ms,
                            code=s["code"],
                            defaults={
                                "title": s.get("title", s["code"]),
                                "description": s.get("description", ""),
                                "responsible_units": s.get("responsible_units", []),
                                "collaborating_units": s.get("collaborating_units", []),
                                "order": s.get("order", s_order),
                            },
                        )
                        counts["sub_standards"] += 1
                        seen_ss.add(s["code"])

                    if prune:
                        _prune(ms.sub_standards.exclude(code__in=seen_ss), "sub_standard")

                if prune:
                    _prune(cat.main_standards.exclude(code__in=seen_ms), "sub_standard__main_standard")

            if dry_run:
                raise DryRun("Dry-run: transaction rolled back")

        try:
            _do_import()
        except DryRun as ex:
            self.stdout.write(self.style.WARNING(str(ex)))
        self.stdout.write(self.style.SUCCESS(
            "Imported {categories} categories, {main_standards} main standards, {sub_standards} sub-standards; "
            "pruned {pruned}, kept {kept}".format(**counts)
        ))
