"""Command line interface for chbp."""
