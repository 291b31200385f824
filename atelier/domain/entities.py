from typing import Literal, get_args

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Enums / Literals ---
SignalType = Literal["Market", "Pricing", "Cultural", "Competitive", "Trend"]
Trajectory = Literal["Rising", "Stable", "Falling"]
CollabRole = Literal["owner", "editor", "analyst", "viewer"]

ChallengeCategory = Literal[
    "Design",
    "Production",
    "UX",
    "Marketing",
    "Technical",
    "Business",
    "Sustainability",
    "Supply Chain",
]
Severity = Literal["medium", "high", "critical", "low"]
ChallengeStatus = Literal["open", "exploring", "solved", "archived"]
SolutionStatus = Literal["proposed", "testing", "implemented", "rejected"]
Effort = Literal["medium", "low", "high"]

PrototypeType = Literal["Clothing", "Product", "UI", "Visual Art", "Music", "3D", "Other"]
PrototypeStatus = Literal["draft", "testing", "approved", "archived"]
PrototypePhase = Literal["Concept", "Sketch", "Digital Mock", "Physical Sample", "Testing", "Final"]

DesignType = Literal["Clothing", "Accessories", "Footwear"]
DesignCategory = Literal[
    "Minimal",
    "Streetwear",
    "Luxury",
    "Technical",
    "Avant-garde",
    "Casual",
    "Formal",
    "Athletic",
]
DesignStatus = Literal["Concept", "Prototype", "Final"]
PipelineStage = Literal[
    "Design", "Prototype", "Sample", "Fit Test", "Finalize", "Production", "Shipping"
]
MaterialType = Literal["Fabric", "Trim", "Color", "Hardware"]
DropType = Literal["Standard", "Limited", "Preorder"]
IPStatus = Literal["pending", "filed", "registered", "expired"]
FitSize = Literal["XS", "S", "M", "L", "XL", "XXL"]

RoundStage = Literal[
    "seed", "pre-seed", "series-a", "series-b", "growth", "bootstrap", "revenue-based", "grant"
]
RoundStatus = Literal["planning", "pitching", "closed", "failed"]
InvestorType = Literal["angel", "vc", "corporate", "accelerator"]

SIGNAL_TYPES: tuple[str, ...] = get_args(SignalType)
TRAJECTORIES: tuple[str, ...] = get_args(Trajectory)
CHALLENGE_CATEGORIES: tuple[str, ...] = get_args(ChallengeCategory)
SEVERITIES: tuple[str, ...] = get_args(Severity)
PROTOTYPE_TYPES: tuple[str, ...] = get_args(PrototypeType)
PROTOTYPE_PHASES: tuple[str, ...] = get_args(PrototypePhase)
DESIGN_CATEGORIES: tuple[str, ...] = get_args(DesignCategory)
PIPELINE_STAGES: tuple[str, ...] = get_args(PipelineStage)
MATERIAL_TYPES: tuple[str, ...] = get_args(MaterialType)
FIT_SIZES: tuple[str, ...] = get_args(FitSize)

# --- Base ---

class Record(BaseModel):
    """
    One entity instance in a collection.

    Serialized with camelCase aliases so stored JSON keeps the
    dashboards' wire shape; unknown keys are ignored on load.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    created_at: str = ""


# --- Shared satellites ---

class Comment(Record):
    target_id: str = Field(
        default="",
        validation_alias=AliasChoices("targetId", "target_id", "signalId", "protoId"),
    )
    author: str = "You"
    text: str
    created_at: str = Field(
        default="", validation_alias=AliasChoices("createdAt", "created_at", "date")
    )


class Task(Record):
    target_id: str = Field(
        default="",
        validation_alias=AliasChoices("targetId", "target_id", "signalId", "protoId", "designId"),
    )
    text: str
    assignee: str = ""
    done: bool = False
    created_at: str = Field(
        default="", validation_alias=AliasChoices("createdAt", "created_at", "date")
    )


class Collaborator(Record):
    name: str
    role: CollabRole = "viewer"
    email: str = ""


class Alert(Record):
    signal_id: str = ""
    message: str
    read: bool = False
    created_at: str = Field(
        default="", validation_alias=AliasChoices("createdAt", "created_at", "date")
    )


# --- Business Intelligence ---

class Signal(Record):
    title: str
    type: SignalType = "Market"
    description: str = ""
    strength: int = 50
    trajectory: Trajectory = "Rising"
    confidence: int = 50
    project_link: str = ""
    tags: list[str] = Field(default_factory=list)
    source: str = ""
    archived: bool = False


# --- Problem-Solution Mapper ---

class Challenge(Record):
    title: str
    description: str = ""
    category: ChallengeCategory = "Design"
    severity: Severity = "medium"
    status: ChallengeStatus = "open"
    impact: int = 50
    project_link: str = ""
    tags: list[str] = Field(default_factory=list)


class Solution(Record):
    challenge_id: str = ""
    title: str
    description: str = ""
    status: SolutionStatus = "proposed"
    effort: Effort = "medium"
    effectiveness: int = 50
    cost: str = ""
    timeline: str = ""
    notes: str = ""


# --- Prototype Vault ---

class Prototype(Record):
    title: str
    description: str = ""
    type: PrototypeType = "Clothing"
    status: PrototypeStatus = "draft"
    project_link: str = ""
    version: int = 1
    iterations: int = 1
    tags: list[str] = Field(default_factory=list)
    favorited: bool = False
    author: str = ""
    phase: PrototypePhase = "Concept"
    preview_url: str = ""
    notes: str = ""
    success_notes: str = ""
    failure_notes: str = ""
    views: int = 0
    interactions: int = 0


# --- Fashion Lab ---

class Design(Record):
    name: str
    type: DesignType = "Clothing"
    category: DesignCategory = "Minimal"
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    design_intent: str = ""
    status: DesignStatus = "Concept"
    pipeline_stage: PipelineStage = "Design"
    notes: str = ""
    versions: list[str] = Field(default_factory=lambda: ["v1"])
    cost_estimate: float = 0


class Material(Record):
    name: str
    type: MaterialType = "Fabric"
    supplier: str = ""
    cost_per_yard: float = 0
    moq: int = 0
    sustainability_score: int = 50
    notes: str = ""
    quantity: int = 0


class Lineup(Record):
    """A fashion collection (a themed drop of designs)."""

    name: str
    theme: str = ""
    color_story: str = ""
    drop_date: str = ""
    design_ids: list[str] = Field(default_factory=list)
    notes: str = ""
    archived: bool = False
    drop_type: DropType = "Standard"
    inventory_limit: int = 0
    revenue: float = 0


class IPRecord(Record):
    design_id: str = ""
    status: IPStatus = "pending"
    ownership: dict[str, float] = Field(default_factory=dict)
    trademark_ref: str = ""
    copyright_tag: str = ""
    licensing_notes: str = ""
    confidential: bool = False
    version_history: list[str] = Field(default_factory=list)


class TechPack(Record):
    """Manufacturing spec sheet for one design."""

    design_id: str = ""
    measurements: dict[str, str] = Field(default_factory=dict)
    fabric_specs: str = ""
    trim_specs: str = ""
    labels: str = ""
    care_instructions: str = ""
    packaging_notes: str = ""
    version: int = 1
    approved: bool = False


class FitTest(Record):
    design_id: str = ""
    tester_name: str
    size: FitSize = "M"
    measurements: dict[str, float] = Field(default_factory=dict)
    fit_notes: str = ""
    rating: int = 7
    issues: list[str] = Field(default_factory=list)
    approved: bool = False
    created_at: str = Field(
        default="", validation_alias=AliasChoices("createdAt", "created_at", "date")
    )


class TrendItem(Record):
    name: str
    score: int = 50
    category: str = ""
    source: str = ""
    projected: str = ""


# --- Funding ---

class FundingRound(Record):
    name: str
    stage: RoundStage = "seed"
    status: RoundStatus = "planning"
    target: float = 0
    raised: float = 0
    valuation: float = 0
    investors: list[str] = Field(default_factory=list)
    closed_date: str = ""


class Investor(Record):
    name: str
    type: InvestorType = "angel"
    check_min: float = 0
    check_max: float = 0
    sectors: list[str] = Field(default_factory=list)
    stages: list[str] = Field(default_factory=list)
    fit_score: int = 50
    contacted: bool = False
