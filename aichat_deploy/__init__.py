"""aichat-deploy — build, dev shell and service descriptor for the aichat server."""

__version__ = "0.1.0"
