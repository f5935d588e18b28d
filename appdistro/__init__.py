"""appdistro - build mobile artifacts and ship them to App Distribution testers."""

__version__ = "1.0.0"
