"""Command line interface for stageboard."""
