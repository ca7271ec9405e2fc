"""
Volunteer Hours module.

Students submit hour-credit requests; admins approve or reject them.
Approval writes an immutable, denormalized ledger entry.

Endpoints:
- GET /horas-voluntariado - Own ledger, total hours and requests
- POST /horas-voluntariado/solicitudes - Submit a request (multipart)
- GET /admin/dashboard - Pending requests, oldest first
- POST /admin/solicitudes/{id}/aprobar - Approve (optional hour override)
- POST /admin/solicitudes/{id}/rechazar - Reject
"""
