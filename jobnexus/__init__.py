"""Job Nexus API - job board backend for applicants and recruiters."""

__version__ = "1.0.0"
