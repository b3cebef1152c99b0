"""factgraph – retraction workflow for an append-only fact graph."""

__version__ = "0.1.0"
