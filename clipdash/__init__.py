"""Personal dashboard with an ephemeral clipboard and a Markdown viewer."""

__version__ = "1.0.0"
