# SQLModel definitions, imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .establishment import Establishment  # noqa: F401
from .subscription import Subscription  # noqa: F401
