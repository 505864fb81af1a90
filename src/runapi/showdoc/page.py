"""ShowDoc page content built from an ApiDoc.

A ShowDoc API page is a JSON document with request/response tables plus
data the generator never produces (scripts, test cases, cookies, example
responses). Unknown keys of an existing page are kept verbatim, and only
the generated parts are overwritten on update.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from runapi.parser.base import ApiDoc, RequestParam, ResponseParam

HEADER_REMARK = "header"


class _PageModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PageParam(_PageModel):
    name: str = ""
    value: str = ""
    type: str = "string"
    require: str = "0"
    remark: str = ""


class ResponseParamDesc(_PageModel):
    name: str = ""
    type: str = "string"
    remark: str = ""


class PageInfo(_PageModel):
    source: str = Field(default="runapi", alias="from")
    type: str = "api"
    title: str = ""
    description: str = ""
    method: str = ""
    url: str = ""
    remark: str = ""
    api_status: str = Field(default="0", alias="apiStatus")


class PageParams(_PageModel):
    mode: str = "formdata"
    urlencoded: list[PageParam] = []
    formdata: list[PageParam] = []
    json_text: str = Field(default="", alias="json")
    json_desc: list[PageParam] = Field(default_factory=list, alias="jsonDesc")


class PageRequest(_PageModel):
    params: PageParams = PageParams()
    headers: list[PageParam] = []
    cookies: list[dict[str, Any]] = []
    auth: dict[str, Any] = {"type": "none", "disabled": "0"}
    query: list[PageParam] = []
    path_variable: list[Any] = Field(default_factory=list, alias="pathVariable")


class PageResponse(_PageModel):
    response_text: str = Field(default="", alias="responseText")
    response_original: Any = Field(default=None, alias="responseOriginal")
    response_example: str = Field(default="", alias="responseExample")
    response_header: Any = Field(default=None, alias="responseHeader")
    response_status: int = Field(default=200, alias="responseStatus")
    response_time: int = Field(default=0, alias="responseTime")
    params_desc: list[ResponseParamDesc] = Field(default_factory=list, alias="responseParamsDesc")
    fail_example: str = Field(default="", alias="responseFailExample")
    fail_params_desc: list[ResponseParamDesc] = Field(default_factory=list, alias="responseFailParamsDesc")
    remark: str = ""
    response_size: int = Field(default=0, alias="responseSize")


class PageContent(_PageModel):
    page_title: str = ""
    info: PageInfo = PageInfo()
    request: PageRequest = PageRequest()
    response: PageResponse = PageResponse()
    scripts: dict[str, Any] = {"pre": "", "post": ""}
    test_cases: list[Any] = Field(default_factory=list, alias="testCases")
    extend: dict[str, Any] = {}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def default_full_content() -> PageContent:
    return PageContent()


def _page_params(params: list[RequestParam]) -> list[PageParam]:
    flags = {"true": "1", "false": "0"}
    return [
        PageParam(name=p.name, type=p.type, require=flags.get(p.require, p.require), remark=p.remark)
        for p in params
    ]


def _header_remark(remark: str) -> str:
    if not remark:
        return HEADER_REMARK
    if HEADER_REMARK in remark:
        return remark
    return f"{HEADER_REMARK} - {remark}"


def _response_rows(params: list[ResponseParam], header: bool = False) -> list[ResponseParamDesc]:
    return [
        ResponseParamDesc(
            name=p.name,
            type=p.type,
            remark=_header_remark(p.remark) if header else p.remark,
        )
        for p in params
    ]


def api_doc_to_page_content(doc: ApiDoc) -> PageContent:
    """Build a fresh page for ``doc``; response headers join the response table."""
    if doc.form_data:
        params = PageParams(mode="formdata", formdata=_page_params(doc.form_data))
    elif doc.body:
        params = PageParams(mode="json", json_desc=_page_params(doc.body))
    else:
        params = PageParams(mode="formdata")

    page = default_full_content()
    page.page_title = doc.title
    page.info = PageInfo(
        title=doc.title,
        description=doc.description,
        method=doc.method,
        url=doc.url or doc.router,
    )
    page.request = PageRequest(
        params=params,
        headers=_page_params(doc.header),
        query=_page_params(doc.query),
    )
    page.response = PageResponse(
        params_desc=_response_rows(doc.response_body) + _response_rows(doc.response_header, header=True),
        remark=doc.remark,
    )
    return page


def merge_page_content(generated: PageContent, existing: PageContent) -> PageContent:
    """Copy the generated parts of a page onto an existing one."""
    merged = existing.model_copy(deep=True)
    merged.page_title = generated.page_title
    merged.info.title = generated.info.title
    merged.info.description = generated.info.description
    merged.info.method = generated.info.method
    merged.info.url = generated.info.url

    params = merged.request.params
    params.mode = generated.request.params.mode
    params.urlencoded = list(generated.request.params.urlencoded)
    params.formdata = list(generated.request.params.formdata)
    params.json_desc = list(generated.request.params.json_desc)
    merged.request.headers = list(generated.request.headers)
    merged.request.query = list(generated.request.query)

    merged.response.params_desc = list(generated.response.params_desc)
    merged.response.remark = generated.response.remark
    return merged
