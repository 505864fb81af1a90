"""Generate the JSON document file and load or compare earlier snapshots."""

import hashlib
import json
from pathlib import Path

from pydantic import ValidationError

from runapi.config import Config
from runapi.errors import DocumentLoadError, NoDocumentsError
from runapi.generator.diff import DocumentDiff, compare_docs
from runapi.generator.validator import render_docs_json
from runapi.logging import get_logger
from runapi.parser.base import ApiDoc
from runapi.parser.docs import DocParser

logger = get_logger(__name__)


class DocGenerator:
    def __init__(self, config: Config):
        self.config = config
        self.output = Path(config.output.file)

    def collect(self) -> list[ApiDoc]:
        """Scan the configured trees and return every documented handler."""
        scan = self.config.scan
        parser = DocParser(
            Path(scan.scan or scan.dir),
            [Path(scan.dir), *(Path(d) for d in scan.extra_dirs)],
            include_vendor=scan.include_vendor,
        )
        return parser.parse()

    def generate_documents(self) -> bool:
        """Write the document file.

        Returns False without writing when nothing is documented or the
        rendered document matches the existing file byte for byte.
        """
        docs = self.collect()
        if not docs:
            logger.info("no documented handlers found")
            return False

        content = render_docs_json(docs)
        if not self._has_changed(content):
            logger.info("{} is unchanged, skipping", self.output)
            return False

        self.write(content)
        logger.info("wrote {} APIs to {}", len(docs), self.output)
        return True

    def get_generated_documents(self) -> tuple[list[ApiDoc], str]:
        """Scan and render without writing. Raises NoDocumentsError when empty."""
        docs = self.collect()
        if not docs:
            raise NoDocumentsError(f"no documented handlers found under {self.config.scan.scan}")
        return docs, render_docs_json(docs)

    def write(self, content: str) -> None:
        self.output.parent.mkdir(parents=True, exist_ok=True)
        self.output.write_text(content, encoding="utf-8")

    def load_existing_documents(self) -> list[ApiDoc]:
        return load_documents(self.output)

    def compare_documents(self, old_docs: list[ApiDoc], new_docs: list[ApiDoc]) -> DocumentDiff:
        return compare_docs(old_docs, new_docs)

    def _has_changed(self, content: str) -> bool:
        if not self.output.exists():
            return True
        existing = self.output.read_bytes()
        return hashlib.md5(existing).digest() != hashlib.md5(content.encode("utf-8")).digest()


def load_documents(path: Path) -> list[ApiDoc]:
    """Read a generated document file back into ApiDoc records."""
    if not path.exists():
        raise DocumentLoadError(f"document file does not exist: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise DocumentLoadError(f"cannot read document file {path}: {e}") from e
    if not isinstance(data, list):
        raise DocumentLoadError(f"document file {path} must hold a JSON array")
    try:
        return [ApiDoc.model_validate(item) for item in data]
    except ValidationError as e:
        raise DocumentLoadError(f"invalid document in {path}: {e}") from e
