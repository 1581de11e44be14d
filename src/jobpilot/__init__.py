"""jobpilot - job-search assistant with AI resume and job analysis."""

__version__ = "1.0.0"
