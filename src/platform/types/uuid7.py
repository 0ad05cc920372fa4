from uuid import UUID

import uuid_utils


def new_uuid7() -> UUID:
    """Time-ordered id as a stdlib UUID (what SQLAlchemy's PG UUID type hands back)."""
    return UUID(str(uuid_utils.uuid7()))
