"""Mirror a remote, append-only HTTP log into local sinks."""

__version__ = "0.1.0"
