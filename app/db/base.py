from app.db.base_class import Base  # noqa: F401

# import models so Base.metadata sees every table
from app.models import admin, request, student  # noqa: F401
