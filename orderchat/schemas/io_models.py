"""Pydantic models for API I/O and agent contracts."""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class ChatMessage(BaseModel):
    role: str
    content: str = ""

class ChatRequest(BaseModel):
    projectId: Optional[str] = None
    lang: Optional[str] = None
    messages: List[ChatMessage] = Field(default_factory=list)

class ChatResponse(BaseModel):
    reply: str

class CatalogItem(BaseModel):
    sku: str
    name: str
    price: float
    final_price: float
    currency: str
    has_discount: bool = False
    discount_name: Optional[str] = None
    discount_categories: List[str] = Field(default_factory=list)

class ConfigResponse(BaseModel):
    project_id: str
    lang: str
    title: str
    description: str
    welcome: str
    currency: str
    products: List[CatalogItem] = Field(default_factory=list)

class AgentResult(BaseModel):
    agent: str
    intent: str
    outcome: str
    facts: Dict[str, Any] = Field(default_factory=dict)
