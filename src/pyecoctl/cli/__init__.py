"""Command line tools for pyecoctl."""
