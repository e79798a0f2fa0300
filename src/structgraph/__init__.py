"""Command line interface and logging setup for structgraph."""
