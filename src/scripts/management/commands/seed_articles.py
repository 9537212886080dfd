"""Seed demo users, a team, categories, and articles in every status."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from access_control.resolver import ArticleStatus
from articles import services
from articles.models import Article, Category
from authentication.managers import UserManager
from teams.models import Team, TeamMember

DEMO_PASSWORD = "demo-pass-123"
DEMO_USERS = {
    "owner@example.com": "Olivia Owner",
    "editor@example.com": "Eddie Editor",
    "reader@example.com": "Riley Reader",
}
DEMO_TEAM = "Demo Newsroom"
DEMO_CATEGORIES = ["Engineering", "Product", "Company News"]


def create_seed_users() -> dict:
    """Create demo users if missing and return an email->User map."""
    User = get_user_model()
    users = {}
    for email, name in DEMO_USERS.items():
        user, _ = User.objects.get_or_create(
            email=email,
            defaults={"name": name, "password_hash": UserManager.hash_password(DEMO_PASSWORD)},
        )
        users[email] = user
    return users


def create_seed_team(users: dict) -> Team:
    """Put the owner and editor in one team; the reader stays team-less."""
    team, _ = Team.objects.get_or_create(name=DEMO_TEAM)
    TeamMember.objects.get_or_create(
        user=users["owner@example.com"], team=team, defaults={"role": TeamMember.Role.OWNER}
    )
    TeamMember.objects.get_or_create(
        user=users["editor@example.com"], team=team, defaults={"role": TeamMember.Role.MEMBER}
    )
    return team


def create_seed_categories() -> dict:
    categories = {}
    for name in DEMO_CATEGORIES:
        category, _ = Category.objects.get_or_create(name=name, defaults={"slug": services.generate_slug(name)})
        categories[name] = category
    return categories


def create_seed_articles(users: dict, team: Team, categories: dict) -> list:
    """Create one article per status for the owner plus a draft for the editor."""
    owner = users["owner@example.com"]
    editor = users["editor@example.com"]
    specs = [
        (owner, "Hello World", ArticleStatus.PUBLISHED, "Company News", ["announcement"]),
        (owner, "Roadmap Draft", ArticleStatus.DRAFT, "Product", ["roadmap", "planning"]),
        (owner, "Old Release Notes", ArticleStatus.ARCHIVED, "Engineering", ["release"]),
        (editor, "Editor Scratchpad", ArticleStatus.DRAFT, "Engineering", []),
    ]
    articles = []
    for author, title, status, category, tags in specs:
        slug = services.generate_slug(title)
        existing = Article.objects.filter(slug=slug).first()
        if existing:
            articles.append(existing)
            continue
        articles.append(
            services.create_article(
                author,
                {
                    "title": title,
                    "slug": slug,
                    "content": f"{title}: demo content.",
                    "excerpt": None,
                    "category": categories[category],
                    "status": status,
                },
                tags=tags,
                team=team,
            )
        )
    return articles


class Command(BaseCommand):
    """Management command to seed demo content."""

    help = (
        "Seed demo users, a team, categories, and articles in each status. "
        "Use --reset to clear previously seeded data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the demo users, team, categories, and articles before seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self._reset_seeded_data()

        self.stdout.write("Seeding demo content...")
        users = create_seed_users()
        team = create_seed_team(users)
        categories = create_seed_categories()
        articles = create_seed_articles(users, team, categories)
        self.stdout.write(
            self.style.SUCCESS(f"Seed completed: {len(users)} users, {len(articles)} articles.")
        )

    def _reset_seeded_data(self) -> None:
        """Remove demo users (their articles cascade), the demo team, and categories."""
        self.stdout.write("Resetting previously seeded data...")
        User = get_user_model()
        Article.all_objects.filter(owner__email__in=DEMO_USERS).delete()
        User.objects.filter(email__in=DEMO_USERS).delete()
        Team.objects.filter(name=DEMO_TEAM).delete()
        Category.objects.filter(name__in=DEMO_CATEGORIES).delete()
        self.stdout.write(self.style.WARNING("Seeded data cleared."))
