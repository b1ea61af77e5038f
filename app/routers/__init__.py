"""
routers/ — HTTP surface of the Ashinaga API, one APIRouter per resource.

auth, users, scholars, goals, tasks, requests, files, announcements and
invitations are mounted in main.py under /api (and /api/v1 via rewrite).
Handlers resolve the session user through dependencies.py, delegate to
services/, and shape responses with the camelCase models in schemas/.
"""
