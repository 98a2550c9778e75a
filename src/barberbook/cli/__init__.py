"""Command line interface for barberbook."""
