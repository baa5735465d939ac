"""opsdash-server: operations dashboard API with a tool-calling assistant.

This package serves CRM, project, invoice, calendar and email data gathered
from Supabase, ClickUp and Google Workspace, and an assistant that answers
questions about that data by calling tools through Ollama or OpenAI.
"""

__version__ = "0.1.0"

from opsdash_server.app import create_app  # noqa: E402

__all__ = ["create_app", "__version__"]
