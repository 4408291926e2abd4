"""
Management command: seed_citizenone
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds a fresh database with an admin account, one department per
serviced complaint category (each with a supervisor heading it and an
officer) and a sample citizen.

The command is **idempotent** — safe to run multiple times.  Existing
departments and users (matched by code / e-mail) are left as they are;
only missing rows are created.

Usage::

    python manage.py seed_citizenone
    python manage.py seed_citizenone --password "s3cret-pass"

Prerequisites::

    python manage.py migrate
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import UserRole
from complaints.models import ComplaintCategory
from departments.models import Department

User = get_user_model()

# ────────────────────────────────────────────────────────────────────
# Department seed data
# ────────────────────────────────────────────────────────────────────
# Key:   department code
# Value: (name, description, slug used for staff e-mails, categories)

DEPARTMENTS: dict[str, tuple[str, str, str, list[str]]] = {
    "WATER": (
        "Water Department",
        "Responsible for water supply and related issues.",
        "water",
        [ComplaintCategory.WATER],
    ),
    "ELEC": (
        "Electricity Department",
        "Responsible for electricity supply and related issues.",
        "electricity",
        [ComplaintCategory.ELECTRICITY],
    ),
    "ROADS": (
        "Roads Department",
        "Responsible for road maintenance and related issues.",
        "roads",
        [ComplaintCategory.ROADS],
    ),
    "SANIT": (
        "Sanitation Department",
        "Responsible for sanitation and waste management.",
        "sanitation",
        [ComplaintCategory.SANITATION],
    ),
    "PUBSRV": (
        "Public Services Department",
        "Responsible for public buildings, parks and other civic services.",
        "public.services",
        [ComplaintCategory.PUBLIC_SERVICES, ComplaintCategory.OTHER],
    ),
}

ADMIN_EMAIL = "admin@example.com"
CITIZEN_EMAIL = "citizen@example.com"


class Command(BaseCommand):
    help = (
        "Seeds an admin, one department per complaint category with a "
        "supervisor and an officer, and a sample citizen.  Safe to run "
        "multiple times (idempotent)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="password123",
            help="Password given to every newly created account.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options["password"]
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  CitizenOne — Seeding departments & users"
            "\n══════════════════════════════════════════\n"
        ))

        created = 0
        existing = 0

        # ── 1. Admin ────────────────────────────────────────────────
        _, was_created = self._ensure_user(
            ADMIN_EMAIL, "Admin User", UserRole.ADMIN, None, password,
            is_staff=True, is_superuser=True,
        )
        created, existing = created + was_created, existing + (not was_created)

        # ── 2. Departments with their staff ─────────────────────────
        for code, (name, description, slug, categories) in DEPARTMENTS.items():
            department, dept_created = Department.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "description": description,
                    "contact_email": f"{slug.replace('.', '')}@example.com",
                    "categories": [str(c) for c in categories],
                },
            )
            self._report(dept_created, f"department {code:<8s} {name}")

            supervisor, sup_created = self._ensure_user(
                f"{slug}.supervisor@example.com",
                f"{name.replace(' Department', '')} Supervisor",
                UserRole.SUPERVISOR,
                department,
                password,
            )
            _, off_created = self._ensure_user(
                f"{slug}.officer@example.com",
                f"{name.replace(' Department', '')} Officer",
                UserRole.OFFICER,
                department,
                password,
            )
            if department.head_id is None:
                department.head = supervisor
                department.save(update_fields=["head", "updated_at"])

            for flag in (dept_created, sup_created, off_created):
                created, existing = created + flag, existing + (not flag)

        # ── 3. Sample citizen ───────────────────────────────────────
        _, was_created = self._ensure_user(
            CITIZEN_EMAIL, "John Smith", UserRole.CITIZEN, None, password,
        )
        created, existing = created + was_created, existing + (not was_created)

        # ── Summary ─────────────────────────────────────────────────
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  Done!  {created} row(s) created, {existing} already present.\n"
        ))

    # ── Helpers ─────────────────────────────────────────────────────

    def _ensure_user(self, email, name, role, department, password, **extra):
        user = User.objects.filter(email__iexact=email).first()
        if user is not None:
            self._report(False, f"user {email}")
            return user, False
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name,
            role=role,
            department=department,
            **extra,
        )
        self._report(True, f"user {email} ({role})")
        return user, True

    def _report(self, created: bool, label: str) -> None:
        if created:
            self.stdout.write(self.style.SUCCESS(f"  ✔  Created {label}"))
        else:
            self.stdout.write(f"  ·  Exists  {label}")
