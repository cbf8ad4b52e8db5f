# Models package: import all models here so Alembic can discover them.

from salestrack.models.user import User, Profile  # noqa: F401
from salestrack.models.prospect import Prospect  # noqa: F401
from salestrack.models.follow_up import FollowUp  # noqa: F401
from salestrack.models.notification import Notification  # noqa: F401
