from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from inpatient.models import User

TEST_SET = [
    ("admin", "admin@hospital.local", User.ROLE_ADMIN),
    ("superadmin", "superadmin@hospital.local", User.ROLE_SUPERADMIN),
]


class Command(BaseCommand):
    help = "Ensure the admin and superadmin test accounts exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="admin123", help="Password set on every test account.")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, email, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "role": role, "password": password, "is_active": True},
            )
            if not created:
                # reset credentials and role on reruns
                u.email = email
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["email", "password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
