"""Publish API documents to ShowDoc, all of them or only what changed."""

import json

from pydantic import ValidationError

from runapi.config import ShowDocConfig
from runapi.errors import ShowDocConfigError, ShowDocError
from runapi.generator.diff import DocumentDiff
from runapi.logging import get_logger
from runapi.parser.base import ApiDoc
from runapi.showdoc.client import CatalogItem, ShowDocClient
from runapi.showdoc.page import PageContent, api_doc_to_page_content, default_full_content, merge_page_content

logger = get_logger(__name__)

DEFAULT_CATALOG = "Default"


class PushResult:
    def __init__(self):
        self.pushed: list[str] = []
        self.failed: dict[str, str] = {}

    def __repr__(self) -> str:
        return f"PushResult(pushed={len(self.pushed)}, failed={len(self.failed)})"


class Pusher:
    def __init__(self, config: ShowDocConfig, client: ShowDocClient | None = None):
        self.config = config
        self.client = client or ShowDocClient(config.url, config.api_key, config.api_token)

    def _check_config(self) -> None:
        if not self.config.enabled:
            raise ShowDocConfigError("ShowDoc push is not enabled (showdoc.enabled)")
        if not self.config.api_key or not self.config.api_token:
            raise ShowDocConfigError("ShowDoc api_key or api_token is not configured")

    def push_documents(self, docs: list[ApiDoc]) -> PushResult:
        self._check_config()
        logger.info("pushing {} documents to ShowDoc", len(docs))
        catalogs = self._catalog_map()
        result = PushResult()
        for catalog, catalog_docs in _group_by_catalog(docs).items():
            self._push_catalog(catalog, catalog_docs, catalogs, result)
        return result

    def push_changed_documents(self, diff: DocumentDiff) -> PushResult:
        """Push added and changed documents. Removed ones stay on ShowDoc."""
        self._check_config()
        result = PushResult()
        if not diff.has_changes():
            logger.info("no document changes, nothing to push")
            return result

        logger.info("document changes: {}", diff.summary())
        catalogs = self._catalog_map()
        for catalog, catalog_docs in _group_by_catalog(diff.added).items():
            self._push_catalog(catalog, catalog_docs, catalogs, result)
        for change in diff.changed:
            self._push_one(change.new, result)
        if diff.removed:
            logger.info("{} removed documents are left on ShowDoc", len(diff.removed))
        return result

    def _catalog_map(self) -> dict[str, str]:
        tree = self.client.get_catalog_tree()
        catalogs: dict[str, str] = {}
        _walk_catalogs(tree.catalogs, "", catalogs)
        return catalogs

    def _ensure_catalog(self, path: str, catalogs: dict[str, str]) -> str:
        """Return the id of catalog ``a/b/c``, creating missing levels."""
        if path in catalogs:
            return catalogs[path]
        parent_id = "0"
        current = ""
        for part in path.split("/"):
            current = f"{current}/{part}" if current else part
            if current in catalogs:
                parent_id = catalogs[current]
                continue
            parent_id = self.client.create_catalog(part, parent_id)
            catalogs[current] = parent_id
            logger.info("created catalog {} (id {})", current, parent_id)
        return parent_id

    def _push_catalog(
        self,
        catalog: str,
        docs: list[ApiDoc],
        catalogs: dict[str, str],
        result: PushResult,
    ) -> None:
        self._ensure_catalog(catalog, catalogs)
        for doc in docs:
            self._push_one(doc, result)

    def _push_one(self, doc: ApiDoc, result: PushResult) -> None:
        try:
            page = merge_page_content(api_doc_to_page_content(doc), self._existing_page(doc.title))
            page_id = self.client.update_page(doc.title, page, doc.catalog or DEFAULT_CATALOG)
        except ShowDocError as e:
            logger.error("failed to push {}: {}", doc.title, e)
            result.failed[doc.title] = str(e)
            return
        logger.info("pushed {} (page id {})", doc.title, page_id)
        result.pushed.append(doc.title)

    def _existing_page(self, title: str) -> PageContent:
        try:
            page = self.client.get_page(page_title=title)
            content = PageContent.model_validate(json.loads(page.page_content))
        except (ShowDocError, ValueError, ValidationError) as e:
            logger.debug("no usable existing page for {} ({}), starting a new one", title, e)
            return default_full_content()
        content.info.title = page.page_title or content.info.title
        return content


def _walk_catalogs(items: list[CatalogItem], parent: str, catalogs: dict[str, str]) -> None:
    for item in items:
        path = f"{parent}/{item.cat_name}" if parent else item.cat_name
        catalogs[path] = item.cat_id
        _walk_catalogs(item.catalogs, path, catalogs)


def _group_by_catalog(docs: list[ApiDoc]) -> dict[str, list[ApiDoc]]:
    grouped: dict[str, list[ApiDoc]] = {}
    for doc in docs:
        grouped.setdefault(doc.catalog or DEFAULT_CATALOG, []).append(doc)
    return grouped
