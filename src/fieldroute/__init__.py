"""Route sequencing for field-service technicians."""

__version__ = "0.1.0"
