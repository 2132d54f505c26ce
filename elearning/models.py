"""
E-Learning Application Models Registry

This module serves as the central models registry for the E-Learning application.
It imports and exposes all models from the logical submodules (courses, purchases,
progress) to ensure they are properly registered with Django's ORM system.

Architecture:
- courses/: Course catalogue and lectures
- purchases/: Checkout attempts and payment state
- progress/: Per-user lecture viewing progress

Author: DSP Development Team
Version: 1.0.0
"""

# Import all catalogue models for registration with Django ORM
from .courses.models import *

# Import all purchase models for registration with Django ORM
from .purchases.models import *

# Import all progress models for registration with Django ORM
from .progress.models import *
