"""Seed permissions, roles, demo users and demo posts."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from access_control.cache import permission_cache
from access_control.models import Permission, Role
from authentication.managers import hash_password
from posts import lifecycle
from posts.models import Post, PostStatus

PERMISSIONS = [
    "manage users",
    "create posts",
    "edit posts",
    "delete posts",
    "view reports",
    "access admin panel",
    "manage orders",
    "view own orders",
]

# ``None`` grants every permission.
ROLES = {
    "admin": None,
    "editor": ["create posts", "edit posts"],
    "client": ["view own orders"],
    "guest": [],
}

DEMO_USERS = [
    ("Admin User", "admin@example.com", "admin"),
    ("Editor User", "editor@example.com", "editor"),
    ("Test User", "test@example.com", "client"),
]
DEMO_PASSWORD = "password"

DEMO_POSTS = [
    ("admin@example.com", "Welcome to the Blog", PostStatus.PUBLISHED),
    ("admin@example.com", "Roadmap for Next Quarter", PostStatus.DRAFT),
    ("editor@example.com", "Writing Great Excerpts", PostStatus.PUBLISHED),
    ("editor@example.com", "Old Announcement", PostStatus.ARCHIVED),
    ("test@example.com", "My First Post", PostStatus.DRAFT),
]


def create_seed_permissions() -> dict[str, Permission]:
    return {name: Permission.objects.get_or_create(name=name)[0] for name in PERMISSIONS}


def create_seed_roles(permissions: dict[str, Permission]) -> dict[str, Role]:
    """Create roles if missing and give each its permission set."""
    roles = {}
    for name, granted in ROLES.items():
        role, _ = Role.objects.get_or_create(name=name)
        names = PERMISSIONS if granted is None else granted
        role.permissions.add(*(permissions[permission] for permission in names))
        roles[name] = role
    return roles


class Command(BaseCommand):
    """Management command to seed roles, permissions and sample data."""

    help = (
        "Seed permissions, the admin/editor/client/guest roles, and demo users/posts. "
        "Use --reset to clear previously seeded data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Clear seeded roles, permissions and demo users/posts before running the seeder.",
        )
        parser.add_argument(
            "--no-demo",
            action="store_true",
            help="Only seed permissions and roles.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        with transaction.atomic():
            if options.get("reset"):
                self._reset_seeded_data()

            self.stdout.write("Seeding roles and permissions...")
            roles = create_seed_roles(create_seed_permissions())
            if not options.get("no_demo"):
                self._create_demo_users_and_posts(roles)

        permission_cache.forget()
        self.stdout.write(self.style.SUCCESS("Seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove demo users (their posts cascade) and the seeded roles/permissions."""
        self.stdout.write("Resetting previously seeded data...")
        User = get_user_model()
        User.objects.filter(email__in=[email for _, email, _ in DEMO_USERS]).delete()
        Role.objects.filter(name__in=ROLES).delete()
        Permission.objects.filter(name__in=PERMISSIONS).delete()
        self.stdout.write(self.style.WARNING("Seeded data cleared."))

    def _create_demo_users_and_posts(self, roles: dict[str, Role]) -> None:
        User = get_user_model()
        users = {}
        for name, email, role_name in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={"name": name, "password_hash": hash_password(DEMO_PASSWORD)},
            )
            user.roles.add(roles[role_name])
            users[email] = user
            if created:
                self.stdout.write(f"Created {email} ({role_name})")

        for email, title, status in DEMO_POSTS:
            if Post.objects.filter(user=users[email], title=title).exists():
                continue
            lifecycle.create_post(
                users[email],
                {"title": title, "content": f"<p>{title}.</p> Demo content for the seeded blog.", "status": status},
            )
        self.stdout.write(f"Demo password for all users: {DEMO_PASSWORD}")
