from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Any


class WorkflowCategory(str, Enum):
    CONTENT_AUTOMATION = "CONTENT_AUTOMATION"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    DATA_PROCESSING = "DATA_PROCESSING"
    COMMUNICATION = "COMMUNICATION"
    FINANCE = "FINANCE"
    MARKETING = "MARKETING"
    DEVELOPMENT = "DEVELOPMENT"
    OTHER = "OTHER"


class WorkflowComplexity(str, Enum):
    SIMPLE = "SIMPLE"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    BUSINESS = "BUSINESS"


class TriggerType(str, Enum):
    SCHEDULED = "SCHEDULED"
    WEBHOOK = "WEBHOOK"
    MANUAL = "MANUAL"
    EMAIL = "EMAIL"
    FILE_CHANGE = "FILE_CHANGE"
    DATABASE_CHANGE = "DATABASE_CHANGE"
    API_CALL = "API_CALL"
    OTHER = "OTHER"


class WorkflowStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class WorkflowTemplate(BaseModel):
    """A shareable workflow template."""

    id: str = Field(..., description="Unique workflow ID")
    title: str = Field(..., description="Workflow title")
    description: str = Field(..., description="Workflow description")
    category: WorkflowCategory = WorkflowCategory.OTHER
    complexity: WorkflowComplexity = WorkflowComplexity.SIMPLE
    trigger_type: TriggerType = TriggerType.MANUAL
    status: WorkflowStatus = WorkflowStatus.DRAFT
    tags: list[str] = Field(default_factory=list)
    workflow_data: Any | None = Field(None, description="Raw workflow JSON (nodes and connections)")
    preview_image: str | None = None
    node_count: int = Field(0, ge=0)
    view_count: int = 0
    download_count: int = 0
    like_count: int = 0
    created_by: str = Field(..., description="ID of the user who created the workflow")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class WorkflowCreate(BaseModel):
    """Request to create a new workflow template."""

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    complexity: WorkflowComplexity
    status: WorkflowStatus
    category: WorkflowCategory = WorkflowCategory.OTHER
    trigger_type: TriggerType = TriggerType.MANUAL
    tags: list[str] = Field(default_factory=list)
    workflow_data: Any | None = None
    node_count: int = Field(0, ge=0)
    preview_image: str | None = None


class WorkflowUpdate(BaseModel):
    """Request to update a workflow template."""

    title: str | None = Field(None, min_length=1)
    description: str | None = Field(None, min_length=1)
    category: WorkflowCategory | None = None
    complexity: WorkflowComplexity | None = None
    trigger_type: TriggerType | None = None
    status: WorkflowStatus | None = None
    preview_image: str | None = None
    tags: list[str] | None = None
    workflow_data: Any | None = None


class WorkflowSummary(BaseModel):
    """Workflow metadata for list views, with the viewer's like state."""

    id: str
    title: str
    description: str
    category: WorkflowCategory
    complexity: WorkflowComplexity
    trigger_type: TriggerType
    status: WorkflowStatus
    tags: list[str] = []
    node_count: int = 0
    view_count: int = 0
    download_count: int = 0
    like_count: int = 0
    is_liked: bool | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    workflow_data: Any | None = None


class WorkflowListResponse(BaseModel):
    """A page of workflows."""

    items: list[WorkflowSummary]
    next_cursor: str | None = None


class WorkflowStats(BaseModel):
    total_workflows: int
    total_published_workflows: int
    total_authors: int
    category_counts: dict[str, int]


class WorkflowFeedItem(BaseModel):
    """One entry of the latest-workflows feed."""

    id: str
    title: str
    description: str
    link: str
    author: str
    category: WorkflowCategory
    tags: list[str] = []
    published_at: datetime
    workflow_data: Any = Field(..., description="Workflow JSON; an empty graph when none was stored")


class WorkflowFeed(BaseModel):
    title: str
    link: str
    items: list[WorkflowFeedItem]
