"""
Login and logout.

Endpoints:
- POST /login - Sign in with email and password, set the session cookie
- DELETE /login - Clear the session cookie
"""
