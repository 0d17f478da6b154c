from pydantic import BaseModel
from typing import Optional, List


class NodeModel(BaseModel):
    id: str
    label: str
    service: str = "Unknown"


class EdgeModel(BaseModel):
    source: str
    target: str
    type: Optional[str] = None


class GraphModel(BaseModel):
    nodes: List[NodeModel] = []
    edges: List[EdgeModel] = []


class ValidationStepModel(BaseModel):
    action: str
    status: str  # success | failure
    message: str


class GraphResponse(BaseModel):
    graph: GraphModel
    validationSteps: List[ValidationStepModel] = []
    warnings: List[str] = []
    error: Optional[str] = None
    region: Optional[str] = None
