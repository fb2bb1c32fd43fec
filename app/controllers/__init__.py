"""FastAPI routers acting as controllers in the MVC architecture."""

from . import analysis, auth, dashboard, lectures, rubrics, schools, teachers, uploads, users

__all__ = [
    "analysis",
    "auth",
    "dashboard",
    "lectures",
    "rubrics",
    "schools",
    "teachers",
    "uploads",
    "users",
]
