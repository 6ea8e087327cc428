"""Launch router: decides between the local catalog and a remote destination on app launch."""

__version__ = "0.1.0"
