# Routes package init
"""
AssetDesk Backend — API Routes Package
========================================

What:  HTTP route handlers for the notification API.

Route Inventory:
    - notifications.py: GET    /api/notifications
                        GET    /api/notifications/unread-count
                        POST   /api/notifications/mark-read
                        POST   /api/notifications/mark-all-read
                        DELETE /api/notifications/clear-all
                        POST   /api/notifications/{id}/snooze
                        DELETE /api/notifications/{id}
                        POST   /api/notifications            (admin)
                        POST   /api/notifications/broadcast  (admin)
                        POST   /api/notifications/cleanup    (admin)
    - preferences.py:   GET/PUT /api/notifications/preferences
    - health.py:        GET    /health
    - dependencies.py:  caller identity, admin check, dispatcher factory

Routes stay thin: read the request, call a service, shape the response.
"""
