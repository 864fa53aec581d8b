from .base import BaseSeeder
from .registry import SeederRegistry

# Importing the sub-modules registers their seeders; priority sets run order.

# Core (Priority 0-100)
from .core import site_settings

# Demo (Priority 500+)
from .demo import catalog
from .demo import users
