"""SQLAlchemy declarative base and model imports for Alembic."""
from arena.db.session import Base

# Import all models so Alembic can see them
from arena.models.attempt import Attempt  # noqa: F401
from arena.models.competition import Catalog, Competition  # noqa: F401
from arena.models.user import Group, User  # noqa: F401

__all__ = ["Base", "User", "Group", "Catalog", "Competition", "Attempt"]
