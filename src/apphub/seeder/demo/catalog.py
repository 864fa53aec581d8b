from apphub.catalog.models import App, AppCategory, CategoryType
from apphub.catalog.service import CatalogService
from apphub.seeder.base import BaseSeeder
from apphub.seeder.registry import SeederRegistry
from apphub.subscriptions.models import SubscriptionPlan
from apphub.subscriptions.service import SubscriptionService

DEMO_CATEGORIES = [
    ("Productivity", "Everyday tools", CategoryType.PUBLIC),
    ("Internal", "Team-only dashboards", CategoryType.PRIVATE),
    ("Analytics Pro", "Paid reporting suite", CategoryType.PRO),
]

@SeederRegistry.register
class CatalogDemoSeeder(BaseSeeder):
    """Seeds demo categories and apps."""
    priority = 500
    demo = True

    def should_run(self):
        return self.session.query(App).count() == 0

    def run(self):
        service = CatalogService(self.session)
        categories = []
        for order, (name, description, ctype) in enumerate(DEMO_CATEGORIES):
            categories.append(
                service.create_category(
                    {"name": name, "description": description, "type": ctype.value, "order": order}
                )
            )

        count = 9
        self.log(f"Generating {count} demo apps...")
        for i in range(count):
            category = categories[i % len(categories)]
            service.create_app(
                {
                    "name": self.fake.company(),
                    "description": self.fake.catch_phrase(),
                    "url": f"https://{self.fake.domain_name()}",
                    "categories": [category.id],
                    "allowed_roles": ["user", "admin", "superAdmin"] if i % 4 else ["admin", "superAdmin"],
                }
            )
        self.log(f"Inserted {len(categories)} categories and {count} apps.")


@SeederRegistry.register
class PlanDemoSeeder(BaseSeeder):
    """Seeds a paid plan unlocking the non-public demo categories."""
    priority = 510
    demo = True

    def should_run(self):
        return self.session.query(SubscriptionPlan).count() == 0

    def run(self):
        locked = [
            c.id
            for c in self.session.query(AppCategory).all()
            if c.type != CategoryType.PUBLIC.value
        ]
        SubscriptionService(self.session).create_plan(
            {
                "name": "Pro",
                "description": "Unlocks private and pro apps",
                "price": 9.99,
                "interval": "monthly",
                "features": ["All private apps", "Pro analytics"],
                "categories": locked,
            }
        )
        self.log("Created demo plan 'Pro'.")
