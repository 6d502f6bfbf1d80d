"""
AssetDesk Backend — Abstract Notification Delivery Interface
==============================================================

What:  The contract between the dispatcher (which decides WHO is told WHAT)
       and the delivery side (which persists and gates notifications).
How:   Concrete implementations inherit from NotificationDelivery.
Who:   NotificationDispatcher calls it; InAppDelivery implements it for
       production, tests pass a recording fake.

Implementations:
    - InAppDelivery: one committed session per call, writes in-app rows
      through NotificationService (honours preferences and DND).
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from app.services.templates import Template


class NotificationDelivery(ABC):
    """
    Abstract delivery service for templated notifications.

    Contract:
        - notify() addresses exactly one user id.
        - notify_audience() lets the delivery side pick recipients from the
          template's audience policy (roles, or every user).
        - Implementations may decline to deliver (muted by preference,
          Do-Not-Disturb) without raising.
        - Failures raise; callers decide whether to swallow them.
    """

    @abstractmethod
    async def notify(
        self,
        recipient_user_id: int,
        template: Template,
        payload: Mapping[str, Any],
    ) -> Any:
        """
        Deliver one notification to one user.

        Args:
            recipient_user_id: users.id of the recipient.
            template: Catalog key (see app/services/templates.py).
            payload: Values the template renders from.

        Returns:
            Implementation-specific record of the delivery, or None when
            the notification was suppressed.
        """
        ...

    @abstractmethod
    async def notify_audience(
        self,
        template: Template,
        payload: Mapping[str, Any],
    ) -> int:
        """
        Deliver to the template's default audience.

        Returns:
            Number of notifications actually created.
        """
        ...
