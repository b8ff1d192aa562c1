# app/models/__init__.py
from app.db.base import Base  # noqa: F401

# order matters due to FKs
from . import user            # noqa: F401
from . import wedding         # noqa: F401
from . import collaborator    # noqa: F401
