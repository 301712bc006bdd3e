"""erdcore command-line interface."""
