from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class MigrationStatus(str, enum.Enum):
    """Outcome of one migration in a run"""
    SKIPPED = "skipped"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
