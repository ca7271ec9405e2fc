"""
Notifications module.

Simple rows addressed to one credential identity, fetched on demand.

Endpoints:
- GET /notificaciones - Latest notifications and unread count
- POST /notificaciones/marcar-leidas - Mark all as read
- DELETE /notificaciones/{id} - Delete one
- DELETE /notificaciones - Delete all
"""
