"""Bundle files from a tagged GitHub repository into cached zip archives."""

__version__ = "0.1.0"
