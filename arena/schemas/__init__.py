from arena.schemas.attempt import (
    AttemptSchema,
    AttemptWithUserSchema,
    GroupSchema,
    TryUpdateSchema,
    UserSnapshotSchema,
)
from arena.schemas.competition import (
    AnswerRequestSchema,
    AnswerResultSchema,
    InputRequestSchema,
    PermissionSchema,
)

__all__ = [
    "AttemptSchema",
    "AttemptWithUserSchema",
    "GroupSchema",
    "TryUpdateSchema",
    "UserSnapshotSchema",
    "AnswerRequestSchema",
    "AnswerResultSchema",
    "InputRequestSchema",
    "PermissionSchema",
]
