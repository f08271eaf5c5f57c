# Imports every model so their tables are registered in Base.metadata
# before create_all() or the routers touch the database.

from vaccination_portal.models.student import Student, VaccinationRecord  # noqa: F401
from vaccination_portal.models.drive import Drive  # noqa: F401
