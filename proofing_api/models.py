from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional, Union

CATEGORIES = (
    "factCheck",
    "linkCheck",
    "toneCheck",
    "typoCheck",
    "readabilityCheck",
    "notationCheck",
)

class AnalyzeRequest(BaseModel):
    text: Optional[str] = None

class RewriteItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: Optional[int] = None
    original: str
    hint: str = Field("", alias="aiHint")
    reason: str = ""

class RewriteRequest(BaseModel):
    items: Optional[List[RewriteItem]] = None

class Finding(BaseModel):
    context: str = ""
    original: str = Field(min_length=1)
    corrections: List[str] = Field(min_length=1)
    reason: str = ""

class FindingsReport(BaseModel):
    factCheck: List[Finding] = []
    linkCheck: List[Finding] = []
    toneCheck: List[Finding] = []
    typoCheck: List[Finding] = []
    readabilityCheck: List[Finding] = []
    notationCheck: List[Finding] = []

class UrlProbeResult(BaseModel):
    url: str
    reachable: bool
    status: Union[int, Literal["error"]]
    detail: Optional[str] = None

class RewriteResult(BaseModel):
    index: int
    corrections: List[str] = Field(min_length=1)

class RewriteResponse(BaseModel):
    results: List[RewriteResult]
