"""Data models shared by the registry, the doc parser and the generators.

Struct declarations found in Go sources become TypeDeclaration entries;
documented handlers become ApiDoc records whose parameter tables are made
of RequestParam and ResponseParam rows.
"""

from pydantic import BaseModel, ConfigDict, Field as ModelField


class Field(BaseModel):
    """A struct field after its json tag has been applied."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str  # Go type token: string / *User / []Item / user.Profile
    required: bool = True
    remark: str = ""
    embedded: bool = False


class TypeDeclaration(BaseModel):
    """A struct type found while scanning. Immutable once registered."""

    model_config = ConfigDict(frozen=True)

    name: str
    package: str
    package_path: str  # directory relative to its scan root, "." for the root itself
    import_path: str | None = None  # from the nearest go.mod, when there is one
    source_file: str = ""
    fields: tuple[Field, ...] = ()

    @property
    def key(self) -> str:
        return f"{self.package}.{self.name}"

    @property
    def directory(self) -> str:
        return self.source_file.rsplit("/", 1)[0]

    @property
    def qualified_name(self) -> str:
        return f"{self.import_path or self.package_path}.{self.name}"


class RequestParam(BaseModel):
    """A request parameter row (header / query / formData / body)."""

    name: str
    type: str  # string / int / long / float / double / boolean / object / array / file
    require: str = "false"  # "true" / "false"
    remark: str = ""


class ResponseParam(BaseModel):
    """A response parameter row (header / body)."""

    name: str
    type: str  # string / int / long / number / boolean / object / array
    required: bool = False
    remark: str = ""


class ApiDoc(BaseModel):
    """One documented endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    catalog: str = ""
    description: str = ""
    method: str = ""
    router: str = ""
    url: str = ""
    header: list[RequestParam] = []
    query: list[RequestParam] = []
    form_data: list[RequestParam] = ModelField(default_factory=list, alias="formData")
    body: list[RequestParam] = []
    response_header: list[ResponseParam] = []
    response_body: list[ResponseParam] = []
    remark: str = ""
    file_path: str = ModelField(default="", exclude=True)
    function_name: str = ModelField(default="", exclude=True)

    @property
    def route(self) -> str:
        """The router when set, otherwise the url."""
        return self.router or self.url

    def to_json_dict(self) -> dict:
        """Serialize with the document keys, leaving out empty strings and lists."""
        data = self.model_dump(by_alias=True)
        return {key: value for key, value in data.items() if value not in ("", [])}
