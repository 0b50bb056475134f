"""LSP feature providers backed by the schema engine."""

from .completion_provider import CompletionProvider
from .definition_provider import DefinitionProvider
from .hover_provider import HoverProvider

__all__ = ["CompletionProvider", "DefinitionProvider", "HoverProvider"]
