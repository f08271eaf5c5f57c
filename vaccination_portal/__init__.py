"""School vaccination portal: students, vaccination drives and reports."""

__version__ = "1.0.0"
