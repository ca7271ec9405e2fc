"""
Account Activation module.

A bulk-imported student proves eligibility with a single-use activation
token and creates their login identity. Admins can rewind a student's
profile (reset) or detach their login and reissue a token (unlink).

Endpoints:
- GET /activar?token=... - Validate a token and show who it belongs to
- POST /activar - Activate the account and open a session
- POST /admin/estudiantes/{key}/resetear - Clear the profile wizard data
- POST /admin/estudiantes/{key}/desvincular - Detach login, new token
"""
