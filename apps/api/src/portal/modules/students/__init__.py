"""
Students module.

Endpoints:
- GET /dashboard - Student home: profile state, documents and hours
- GET /completar-perfil - Current profile wizard values
- POST /completar-perfil - Save the profile wizard and generate documents
- GET /admin/estudiantes - Admin student list
- POST /admin/estudiantes/{key}/resetear - Admin profile reset
- POST /admin/estudiantes/{key}/desvincular - Admin account unlink
"""
