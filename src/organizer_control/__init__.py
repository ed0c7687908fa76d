"""Local control plane for the FileOrganizer command-line tool."""

__version__ = "0.1.0"
