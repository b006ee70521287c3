from django.core.management.base import BaseCommand, CommandError

from core.services import accounts, resources


class Command(BaseCommand):
    help = "Ensure a confirmed admin account exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--first-name", default="Admin")
        parser.add_argument("--last-name", default="User")

    def handle(self, *args, **opts):
        email = accounts.normalize_email(opts["email"])
        if not email or not opts["password"]:
            raise CommandError("--email and --password must not be empty")

        fields = {
            "password": opts["password"],
            "role": accounts.ADMIN_ROLE,
            "email_confirmed": True,
            "status": "active",
        }
        existing = accounts.find_by_email(email)
        if existing is None:
            account = resources.create_record("users", {
                "email": email,
                "first_name": opts["first_name"],
                "last_name": opts["last_name"],
                **fields,
            })
            self.stdout.write(self.style.SUCCESS(f"created: {email} ({account['id']})"))
            return

        # Reset password, role and confirmation in place
        resources.update_record("users", existing["id"], fields)
        self.stdout.write(self.style.SUCCESS(f"updated: {email} ({existing['id']})"))
