from apphub.config import get_settings
from apphub.seeder.base import BaseSeeder
from apphub.seeder.registry import SeederRegistry
from apphub.system.models import SETTINGS_ROW_ID, SystemSettings

@SeederRegistry.register
class SiteSettingsSeeder(BaseSeeder):
    """Creates the single system settings row with defaults."""
    priority = 10

    def should_run(self):
        return self.session.get(SystemSettings, SETTINGS_ROW_ID) is None

    def run(self):
        self.session.add(
            SystemSettings(
                id=SETTINGS_ROW_ID,
                site_name=get_settings().DEFAULT_SITE_NAME,
                welcome_message="Welcome to our site!",
                support_email="",
                show_support_email=True,
                allow_user_registration=True,
                maintenance_mode=False,
            )
        )
        self.log("Created default system settings.")
