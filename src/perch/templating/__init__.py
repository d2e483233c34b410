"""Data binding for component fragments: observable models and kida views."""

from perch.templating.integration import create_environment
from perch.templating.views import Model, View

__all__ = ["Model", "View", "create_environment"]
