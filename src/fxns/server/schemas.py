"""Pydantic schemas used by the FastAPI server."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DraftRequest(_CamelModel):
    name: str = "Untitled tool"
    description: str = ""
    category: str = ""
    input_config: List[Dict[str, Any]] = Field(default_factory=list, alias="inputConfig")
    logic_config: List[Dict[str, Any]] = Field(default_factory=list, alias="logicConfig")
    output_config: Optional[Dict[str, Any]] = Field(default=None, alias="outputConfig")

    def to_wire(self, draft_id: str) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True)
        data["id"] = draft_id
        return data


class StatusRequest(BaseModel):
    status: str = Field(..., description="draft, testing or published")


class DraftTestRequest(_CamelModel):
    test_data: Dict[str, Any] = Field(default_factory=dict, alias="testData")


class RunToolRequest(BaseModel):
    input: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    version: str
