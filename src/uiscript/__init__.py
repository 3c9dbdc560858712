"""uiscript - human-readable browser UI acceptance tests."""

__version__ = "0.1.0"
