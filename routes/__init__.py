from flask import Blueprint

# single blueprint for the prerequisite JSON api
prereq_bp = Blueprint("prereqs", __name__, url_prefix="/api")

#  import route modules so their views register on the blueprint (hence the # noqa: F401)
from . import prereqs    # noqa: F401
from . import courses    # noqa: F401
