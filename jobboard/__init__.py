"""JobBoard core: application lifecycle and transactional email dispatch."""

__version__ = "0.1.0"
