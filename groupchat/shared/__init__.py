"""Models and formatters shared by the message pipeline and its renderers."""
