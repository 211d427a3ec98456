from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import ASSIGNABLE_ROLES, AdminMembership

User = get_user_model()


class Command(BaseCommand):
    help = "Grant (or change) a staff role for an existing user"

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("--role", default="admin", choices=[role.value for role in ASSIGNABLE_ROLES])

    def handle(self, *args, **options):
        user = User.objects.filter(email__iexact=options["email"]).first()
        if user is None:
            raise CommandError(f"No user with email {options['email']}")

        membership, created = AdminMembership.objects.update_or_create(user=user, defaults={"role": options["role"]})
        action = "created" if created else "updated"
        self.stdout.write(self.style.SUCCESS(f"{user.email}: {membership.role} ({action})"))
