# Services package init
"""
AssetDesk Backend — Services Layer
====================================

What:  Notification routing and delivery, between the routes (HTTP) and
       the database (persistence).
How:   Services take a session (or a session factory) and plain values,
       and raise the exceptions in app.exceptions.

Service Inventory:
    - NotificationDispatcher: per-entity-kind rules deciding who hears what
    - guard: attempt() / never_raises() best-effort call policy
    - templates: notification template catalog and renderers
    - Directory (abstract) / SqlDirectory: employee and asset lookups
    - NotificationDelivery (abstract) / InAppDelivery: delivery interface
    - NotificationService: delivery gating and inbox operations
    - PreferenceService: per-user switches and Do-Not-Disturb
"""
