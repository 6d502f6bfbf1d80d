"""
AssetDesk Backend — ORM Models
================================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and by the test suite's create_all).
"""

from app.models.asset import Asset
from app.models.employee import Employee
from app.models.notification import Notification, NotificationPreference
from app.models.user import User

__all__ = ["Asset", "Employee", "Notification", "NotificationPreference", "User"]
