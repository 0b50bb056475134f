"""JSON Atlas language server."""

import logging
from typing import Any, List, Optional

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..config import AtlasConfig
from ..engine import SchemaEngine
from ..exceptions import AssociationError
from ..workspace import WorkspaceFolders
from .document_processor import DocumentProcessor
from .providers.completion_provider import CompletionProvider
from .providers.definition_provider import DefinitionProvider
from .providers.hover_provider import HoverProvider

logger = logging.getLogger(__name__)

ASSOCIATE_SCHEMA_COMMAND = "jsonAtlas.associateSchema"
CLEAR_ASSOCIATION_COMMAND = "jsonAtlas.clearSchemaAssociation"


class JsonAtlasLanguageServer:
    """Main language server class for JSON Atlas."""

    def __init__(self, config: Optional[AtlasConfig] = None):
        self.server = LanguageServer("json-atlas", __version__)
        self.config = config or AtlasConfig.from_env()

        # Initialize components
        self.workspace = WorkspaceFolders()
        self.engine = SchemaEngine(self.config, self.workspace, on_warning=self._show_warning)
        self.document_processor = DocumentProcessor(self.engine)
        self.completion_provider = CompletionProvider(self.engine, self.document_processor)
        self.definition_provider = DefinitionProvider(self.engine, self.document_processor)
        self.hover_provider = HoverProvider(self.engine, self.document_processor)

        # Register handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register all LSP handlers."""

        @self.server.feature(lsp.INITIALIZE)
        def initialize(ls, params):
            self._on_initialize(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
        def did_open(ls, params):
            self._on_text_document_did_open(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
        def did_change(ls, params):
            self._on_text_document_did_change(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
        def did_save(ls, params):
            self._on_text_document_did_save(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
        def did_close(ls, params):
            self._on_text_document_did_close(ls, params)

        @self.server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
        def did_change_configuration(ls, params):
            self._on_did_change_configuration(ls, params)

        @self.server.feature(lsp.WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
        def did_change_workspace_folders(ls, params):
            self._on_did_change_workspace_folders(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_COMPLETION, lsp.CompletionOptions(trigger_characters=['"']))
        def completion(ls, params):
            return self._on_completion(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
        def definition(ls, params):
            return self._on_definition(ls, params)

        @self.server.feature(lsp.TEXT_DOCUMENT_HOVER)
        def hover(ls, params):
            return self._on_hover(ls, params)

        @self.server.command(ASSOCIATE_SCHEMA_COMMAND)
        def associate_schema(ls, document_uri: str, reference: str):
            return self._on_associate_schema(ls, document_uri, reference)

        @self.server.command(CLEAR_ASSOCIATION_COMMAND)
        def clear_schema_association(ls, document_uri: str):
            return self._on_clear_schema_association(ls, document_uri)

    def start(self):
        """Start the language server."""
        self.server.start_io()

    def _show_warning(self, message: str) -> None:
        self.server.window_show_message(lsp.ShowMessageParams(type=lsp.MessageType.Warning, message=message))

    def _on_initialize(self, ls, params: lsp.InitializeParams):
        """Handle server initialization."""
        logger.info("Initializing JSON Atlas Language Server")

        if params.workspace_folders:
            for folder in params.workspace_folders:
                self.workspace.add(folder.uri)
        elif params.root_uri:
            self.workspace.add(params.root_uri)

        if isinstance(params.initialization_options, dict):
            self._apply_settings(params.initialization_options)

    def _apply_settings(self, settings: Any) -> None:
        self.config = AtlasConfig.from_settings(settings, base=self.config)
        self.engine.update_config(self.config)
        logger.info(
            f"Applied settings: {len(self.config.json_schemas)} json.schemas and "
            f"{len(self.config.atlas_schemas)} jsonAtlas.schemas mapping(s)"
        )

    def _on_text_document_did_open(self, ls, params: lsp.DidOpenTextDocumentParams):
        """Handle document open event."""
        text_document = params.text_document
        self.document_processor.process_document(
            text_document.uri, text_document.text, self.server, text_document.language_id
        )

    def _on_text_document_did_change(self, ls, params: lsp.DidChangeTextDocumentParams):
        """Handle document change event."""
        text_document = self.server.workspace.get_text_document(params.text_document.uri)
        self.document_processor.process_document(
            text_document.uri, text_document.source, self.server, text_document.language_id
        )

    def _on_text_document_did_save(self, ls, params: lsp.DidSaveTextDocumentParams):
        """Handle document save event."""
        text_document = self.server.workspace.get_text_document(params.text_document.uri)
        content = params.text if params.text is not None else text_document.source
        self.document_processor.process_document(
            text_document.uri, content, self.server, text_document.language_id
        )

    def _on_text_document_did_close(self, ls, params: lsp.DidCloseTextDocumentParams):
        """Handle document close event."""
        self.document_processor.close_document(params.text_document.uri, self.server)

    def _on_did_change_configuration(self, ls, params: lsp.DidChangeConfigurationParams):
        """Re-read settings and re-validate every open document."""
        if isinstance(params.settings, dict):
            self._apply_settings(params.settings)
        else:
            self.engine.reset()
        self.document_processor.revalidate_all(self.server)

    def _on_did_change_workspace_folders(self, ls, params: lsp.DidChangeWorkspaceFoldersParams):
        for folder in params.event.removed:
            self.workspace.remove(folder.uri)
        for folder in params.event.added:
            self.workspace.add(folder.uri)
        self.engine.reset()
        self.document_processor.revalidate_all(self.server)

    def _on_completion(self, ls, params: lsp.CompletionParams) -> lsp.CompletionList:
        """Handle completion requests."""
        return self.completion_provider.get_completions(params, self.server)

    def _on_definition(self, ls, params: lsp.DefinitionParams) -> Optional[lsp.Location]:
        """Handle go-to-definition requests."""
        return self.definition_provider.get_definition(params, self.server)

    def _on_hover(self, ls, params: lsp.HoverParams) -> Optional[lsp.Hover]:
        """Handle hover requests."""
        return self.hover_provider.get_hover(params, self.server)

    def _on_associate_schema(self, ls, document_uri: str, reference: str) -> bool:
        """Record a schema for one document and re-validate it."""
        try:
            self.engine.association_store.set_schema_reference(document_uri, reference)
        except AssociationError as e:
            logger.error(f"Failed to associate schema with {document_uri}: {e}")
            self.server.window_show_message(lsp.ShowMessageParams(type=lsp.MessageType.Error, message=str(e)))
            return False
        self._revalidate(document_uri)
        return True

    def _on_clear_schema_association(self, ls, document_uri: str) -> bool:
        try:
            self.engine.association_store.clear_schema_reference(document_uri)
        except AssociationError as e:
            logger.error(f"Failed to clear schema association for {document_uri}: {e}")
            self.server.window_show_message(lsp.ShowMessageParams(type=lsp.MessageType.Error, message=str(e)))
            return False
        self._revalidate(document_uri)
        return True

    def _revalidate(self, document_uri: str) -> None:
        open_documents: List[str] = list(self.server.workspace.text_documents)
        if document_uri in open_documents:
            text_document = self.server.workspace.get_text_document(document_uri)
            self.document_processor.process_document(
                document_uri, text_document.source, self.server, text_document.language_id
            )
