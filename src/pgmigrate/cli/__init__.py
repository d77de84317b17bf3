"""Command-line interface (``pgmigrate``)."""
