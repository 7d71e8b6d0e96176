"""Generate decorators for Go interfaces from Jinja2 templates."""

__version__ = "0.1.0"