from arena.models.user import User, Group
from arena.models.competition import Catalog, Competition
from arena.models.attempt import Attempt

__all__ = ["User", "Group", "Catalog", "Competition", "Attempt"]
