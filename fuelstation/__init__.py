"""Project package for the fuel station back-office (settings, URLs, WSGI)."""
