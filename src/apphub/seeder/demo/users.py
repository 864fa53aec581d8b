from apphub.security.auth.service import AuthService
from apphub.seeder.base import BaseSeeder
from apphub.seeder.registry import SeederRegistry

DEMO_PASSWORD = "demo-password"
DEMO_ACCOUNTS = [
    ("demo-user1@example.com", "user"),
    ("demo-user2@example.com", "user"),
    ("demo-admin@example.com", "admin"),
]

@SeederRegistry.register
class UserDemoSeeder(BaseSeeder):
    """Seeds demo end users sharing one dev password."""
    priority = 520
    demo = True

    def should_run(self):
        service = AuthService(self.session)
        return any(service.find_by_email(email) is None for email, _ in DEMO_ACCOUNTS)

    def run(self):
        service = AuthService(self.session)
        created = 0
        for email, role in DEMO_ACCOUNTS:
            if service.find_by_email(email):
                continue
            service.create_user(
                email=email,
                password=DEMO_PASSWORD,
                display_name=self.fake.name(),
                role=role,
            )
            created += 1
        self.log(f"Created {created} demo users (password: {DEMO_PASSWORD}).")
