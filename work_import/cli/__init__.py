"""Command line interface (``python -m work_import.cli``)."""
