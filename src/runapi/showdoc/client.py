"""Client for the ShowDoc open API (``<url>/<endpoint>``, JSON POST)."""

import html
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from runapi.errors import ShowDocError
from runapi.logging import get_logger
from runapi.showdoc.page import PageContent

logger = get_logger(__name__)

CONTENT_UNCHANGED = 10101
DEFAULT_SORT_NUMBER = "99"


class CatalogItem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    cat_id: str
    cat_name: str
    parent_cat_id: str = "0"
    level: str = ""
    s_number: str = ""
    catalogs: list["CatalogItem"] = []
    pages: list[dict[str, Any]] = []


class CatalogTree(BaseModel):
    catalogs: list[CatalogItem] = []
    pages: list[dict[str, Any]] = []


class PageData(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    page_id: str = ""
    page_title: str = ""
    page_content: str = ""


class ShowDocClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_token: str,
        session: requests.Session | None = None,
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.api_token = api_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, endpoint: str, **payload) -> Any:
        body = {"api_key": self.api_key, "api_token": self.api_token, **payload}
        logger.debug("POST {}/{}", self.base_url, endpoint)
        try:
            resp = self.session.post(f"{self.base_url}/{endpoint}", json=body, timeout=self.timeout)
            resp.raise_for_status()
            result = resp.json()
        except requests.RequestException as e:
            raise ShowDocError(f"{endpoint} request failed: {e}") from e
        except ValueError as e:
            raise ShowDocError(f"{endpoint} returned invalid JSON: {e}") from e
        if not isinstance(result, dict):
            raise ShowDocError(f"{endpoint} returned an unexpected payload")

        code = result.get("error_code", 0)
        if code:
            message = "content unchanged" if code == CONTENT_UNCHANGED else result.get("error_message", "")
            raise ShowDocError(f"{endpoint} failed: {code} - {message}", error_code=code)
        return result.get("data")

    def get_catalog_tree(self) -> CatalogTree:
        data = self._post("getCatalogTree")
        try:
            return CatalogTree.model_validate(data or {})
        except ValidationError as e:
            raise ShowDocError(f"unexpected catalog tree: {e}") from e

    def create_catalog(self, name: str, parent_id: str = "0", sort_number: str = DEFAULT_SORT_NUMBER) -> str:
        """Create a catalog and return its id."""
        data = self._post(
            "createCatalog",
            cat_name=name,
            parent_cat_id=parent_id,
            s_number=sort_number if sort_number not in ("", "0") else DEFAULT_SORT_NUMBER,
        )
        return str((data or {}).get("cat_id", ""))

    def get_page(self, page_title: str = "", page_id: str = "") -> PageData:
        payload = {k: v for k, v in (("page_id", page_id), ("page_title", page_title)) if v}
        data = self._post("getPage", **payload)
        page = PageData.model_validate(data or {})
        page.page_content = html.unescape(page.page_content)
        return page

    def update_page(self, page_title: str, content: PageContent, catalog: str = "", sort_number: int = 99) -> str:
        """Create or overwrite the page titled ``page_title``; returns its id."""
        data = self._post(
            "updatePage",
            page_title=page_title,
            page_content=content.to_json(),
            cat_name=catalog,
            s_number=sort_number or 99,
            ext_info={"page_type": "api", "APIInfo": {"method": content.info.method}},
        )
        return str((data or {}).get("page_id", ""))
