"""CSV import/export and configuration helpers."""

from .config import load_config
from .export_csv import export_meetings_csv, meetings_to_dataframe
from .import_csv import import_employees_csv, import_locations_csv, import_unavailability_csv

__all__ = [
    "load_config",
    "export_meetings_csv",
    "meetings_to_dataframe",
    "import_employees_csv",
    "import_locations_csv",
    "import_unavailability_csv",
]
