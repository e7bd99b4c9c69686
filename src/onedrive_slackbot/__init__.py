"""Watch OneDrive client folders and notify Slack about new files."""

__version__ = "0.1.0"
