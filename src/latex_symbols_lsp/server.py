from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Callable

from pygls.lsp.server import LanguageServer
from pygls.workspace import TextDocument
from lsprotocol.types import (
    COMPLETION_ITEM_RESOLVE,
    INITIALIZED,
    TEXT_DOCUMENT_CODE_ACTION,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    CodeAction,
    CodeActionKind,
    CodeActionOptions,
    CodeActionParams,
    CompletionItem,
    CompletionOptions,
    CompletionParams,
    ConfigurationItem,
    ConfigurationParams,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    InitializedParams,
    PublishDiagnosticsParams,
    Range,
    Registration,
    RegistrationParams,
    TextDocumentSyncKind,
)

from latex_symbols_lsp import __version__
from latex_symbols_lsp.completion import complete, resolve_completion_item
from latex_symbols_lsp.config import (
    resolve_settings,
    symbols_defaults,
    symbols_path,
)
from latex_symbols_lsp.diagnostics import diagnose
from latex_symbols_lsp.document import DocumentSnapshot
from latex_symbols_lsp.exceptions import SymbolTableError
from latex_symbols_lsp.fixes import code_actions
from latex_symbols_lsp.schema import DEFAULT_SETTINGS, Settings
from latex_symbols_lsp.settings import SETTINGS_SECTION, SettingsCache, parse_settings
from latex_symbols_lsp.table import CommandTable, default_table, load_table

logger = logging.getLogger(__name__)

SERVER_NAME = "latex-symbols-lsp"


class LatexSymbolsServer(LanguageServer):
    def __init__(self, *args, table: CommandTable | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.table = table if table is not None else default_table()
        self.global_settings: Settings = DEFAULT_SETTINGS
        self.has_configuration_capability = False
        self.settings_cache = SettingsCache(self.fetch_configuration, DEFAULT_SETTINGS)

    async def fetch_configuration(self, uri: str) -> object:
        result = await self.workspace_configuration_async(
            ConfigurationParams(
                items=[ConfigurationItem(scope_uri=uri, section=SETTINGS_SECTION)]
            )
        )
        return result[0] if result else None


server = LatexSymbolsServer(
    SERVER_NAME,
    __version__,
    text_document_sync_kind=TextDocumentSyncKind.Incremental,
)


def _text_document(ls: LatexSymbolsServer, uri: str) -> TextDocument | None:
    return ls.workspace.text_documents.get(uri)


def _snapshot(doc: TextDocument) -> DocumentSnapshot:
    return DocumentSnapshot(uri=doc.uri, text=doc.source, version=doc.version)


def _to_client(doc: TextDocument, rng: Range) -> Range:
    return doc.position_codec.range_to_client_units(doc.lines, rng)


def _from_client(doc: TextDocument, rng: Range) -> Range:
    return doc.position_codec.range_from_client_units(doc.lines, rng)


async def document_settings(ls: LatexSymbolsServer, uri: str) -> Settings:
    if not ls.has_configuration_capability:
        return ls.global_settings
    return await ls.settings_cache.settings_for(uri)


async def validate_document(ls: LatexSymbolsServer, uri: str) -> None:
    if _text_document(ls, uri) is None:
        return
    settings = await document_settings(ls, uri)
    # The document may have changed or closed while settings were fetched.
    doc = _text_document(ls, uri)
    if doc is None:
        return
    diagnostics = diagnose(_snapshot(doc), ls.table, settings)
    for diagnostic in diagnostics:
        diagnostic.range = _to_client(doc, diagnostic.range)
    logger.debug("publishing %d diagnostics for %s", len(diagnostics), uri)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics, version=doc.version)
    )


async def validate_all(ls: LatexSymbolsServer) -> None:
    for uri in list(ls.workspace.text_documents):
        try:
            await validate_document(ls, uri)
        except Exception:
            logger.exception("validation failed for %s", uri)


def _configure_from_workspace(ls: LatexSymbolsServer) -> None:
    root_path = ls.workspace.root_path
    root = Path(root_path) if root_path else None
    defaults = resolve_settings(root=root)
    ls.global_settings = defaults
    ls.settings_cache.default = defaults
    table_path = symbols_path(symbols_defaults(root=root), base=root)
    if table_path is None:
        return
    try:
        ls.table = load_table(table_path)
    except SymbolTableError as exc:
        logger.error("keeping bundled symbol table: %s", exc)
    else:
        logger.info("using symbol table %s (%d commands)", table_path, len(ls.table))


@server.feature(INITIALIZED)
async def initialized(ls: LatexSymbolsServer, params: InitializedParams) -> None:
    capabilities = ls.client_capabilities
    ls.has_configuration_capability = bool(
        capabilities.workspace and capabilities.workspace.configuration
    )
    _configure_from_workspace(ls)
    if not ls.has_configuration_capability:
        return
    try:
        await ls.client_register_capability_async(
            RegistrationParams(
                registrations=[
                    Registration(
                        id=str(uuid.uuid4()),
                        method=WORKSPACE_DID_CHANGE_CONFIGURATION,
                    )
                ]
            )
        )
    except Exception:
        logger.warning("didChangeConfiguration registration failed", exc_info=True)


@server.feature(TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls: LatexSymbolsServer, params: DidOpenTextDocumentParams) -> None:
    await validate_document(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
async def did_change(ls: LatexSymbolsServer, params: DidChangeTextDocumentParams) -> None:
    await validate_document(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: LatexSymbolsServer, params: DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.settings_cache.evict(uri)
    ls.text_document_publish_diagnostics(PublishDiagnosticsParams(uri=uri, diagnostics=[]))


@server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
async def did_change_configuration(
    ls: LatexSymbolsServer, params: DidChangeConfigurationParams
) -> None:
    if ls.has_configuration_capability:
        ls.settings_cache.clear()
    else:
        raw = None
        if isinstance(params.settings, Mapping):
            raw = params.settings.get(SETTINGS_SECTION)
        ls.global_settings = parse_settings(raw, ls.settings_cache.default)
    await validate_all(ls)


@server.feature(
    TEXT_DOCUMENT_COMPLETION,
    CompletionOptions(trigger_characters=["\\"], resolve_provider=True),
)
def completions(ls: LatexSymbolsServer, params: CompletionParams) -> list[CompletionItem]:
    doc = _text_document(ls, params.text_document.uri)
    if doc is None:
        return []
    snapshot = _snapshot(doc)
    position = doc.position_codec.position_from_client_units(doc.lines, params.position)
    items = complete(snapshot, snapshot.offset_at(position), ls.table)
    if items:
        client_range = _to_client(doc, items[0].text_edit.range)
        for item in items:
            item.text_edit.range = client_range
    logger.debug("%d completions at %s:%s", len(items), params.text_document.uri, params.position)
    return items


@server.feature(COMPLETION_ITEM_RESOLVE)
def completion_item_resolve(ls: LatexSymbolsServer, item: CompletionItem) -> CompletionItem:
    return resolve_completion_item(item, ls.table)


@server.feature(
    TEXT_DOCUMENT_CODE_ACTION,
    CodeActionOptions(code_action_kinds=[CodeActionKind.QuickFix]),
)
async def code_action(ls: LatexSymbolsServer, params: CodeActionParams) -> list[CodeAction]:
    uri = params.text_document.uri
    if _text_document(ls, uri) is None:
        return []
    settings = await document_settings(ls, uri)
    doc = _text_document(ls, uri)
    if doc is None:
        return []
    return code_actions(
        _snapshot(doc),
        params.context.diagnostics,
        ls.table,
        settings,
        to_snapshot_range=lambda rng: _from_client(doc, rng),
    )


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Serve over stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
