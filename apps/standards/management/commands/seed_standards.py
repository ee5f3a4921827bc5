from django.core.management.base import BaseCommand
from django.db import transaction
from apps.standards.models import Category, MainStandard, SubStandard

# Starter internal-control taxonomy modelled on the five COSO components.
DATA = {
    "KO": {
        "name": "Control environment",
        "main_standards": [
            ("KOS 1", "Ethical values and integrity", [
                ("1.1", "Managers and staff act with integrity and ethical values"),
                ("1.2", "Ethical rules are published and known to staff"),
            ]),
            ("KOS 2", "Mission, organization and duties", [
                ("2.1", "The mission is written, published and owned by staff"),
                ("2.2", "Duties and responsibilities are defined for every unit"),
                ("2.3", "Sensitive duties are identified and assigned"),
            ]),
            ("KOS 3", "Personnel competence and performance", [
                ("3.1", "Staff competence matches their duties"),
                ("3.2", "Training needs are planned and met"),
            ]),
            ("KOS 4", "Delegation of authority", [
                ("4.1", "Delegation limits are set in writing"),
            ]),
        ],
    },
    "RDS": {
        "name": "Risk assessment",
        "main_standards": [
            ("RDS 5", "Planning and programming", [
                ("5.1", "Activities are aligned with strategic and performance plans"),
                ("5.2", "Objectives are specific and measurable"),
            ]),
            ("RDS 6", "Risk identification and assessment", [
                ("6.1", "Risks to objectives are identified yearly"),
                ("6.2", "Likelihood and impact of risks are analysed"),
                ("6.3", "Responses to risks are decided and recorded"),
            ]),
        ],
    },
    "KFS": {
        "name": "Control activities",
        "main_standards": [
            ("KFS 7", "Control strategies and methods", [
                ("7.1", "Controls are set for every risk that needs a response"),
                ("7.2", "Controls include prior, ongoing and subsequent checks"),
            ]),
            ("KFS 8", "Procedures and documentation", [
                ("8.1", "Procedures are written and kept current"),
            ]),
            ("KFS 9", "Segregation of duties", [
                ("9.1", "Approval, execution, recording and review are separated"),
            ]),
        ],
    },
    "BIS": {
        "name": "Information and communication",
        "main_standards": [
            ("BIS 13", "Information and communication", [
                ("13.1", "Information is accurate, timely and accessible"),
                ("13.2", "Managers receive the information they need"),
            ]),
            ("BIS 14", "Reporting", [
                ("14.1", "Activities and results are reported periodically"),
            ]),
            ("BIS 16", "Reporting of errors and irregularities", [
                ("16.1", "Staff can report irregularities without reprisal"),
            ]),
        ],
    },
    "IS": {
        "name": "Monitoring",
        "main_standards": [
            ("IS 17", "Assessment of internal control", [
                ("17.1", "Internal control is assessed at least once a year"),
                ("17.2", "Action plans are prepared for identified weaknesses"),
            ]),
            ("IS 18", "Internal audit", [
                ("18.1", "Internal audit covers the internal control system"),
            ]),
        ],
    },
}

class Command(BaseCommand):
    help = "Creates the starter taxonomy (categories, main standards and sub-standards)"

    def handle(self, *args, **opts):
        created_cat = created_ms = created_ss = 0
        with transaction.atomic():
            for c_order, (code, cfg) in enumerate(DATA.items(), start=1):
                cat, cat_created = Category.objects.get_or_create(
                    code=code, defaults={"name": cfg["name"], "order": c_order}
                )
                created_cat += int(cat_created)
                for m_order, (ms_code, title, subs) in enumerate(cfg["main_standards"], start=1):
                    ms, ms_created = MainStandard.objects.get_or_create(
                        category=cat, code=ms_code,
                        defaults={"title": title, "order": m_order, "all_units_responsible": True},
                    )
                    created_ms += int(ms_created)
                    for s_order, (ss_code, ss_title) in enumerate(subs, start=1):
                        _, ss_created = SubStandard.objects.get_or_create(
                            main_standard=ms, code=ss_code, defaults={"title": ss_title, "order": s_order}
                        )
                        created_ss += int(ss_created)
        self.stdout.write(self.style.SUCCESS(
            f"New categories: {created_cat} | main standards: {created_ms} | sub-standards: {created_ss}"
        ))
