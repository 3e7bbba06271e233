"""
Record types for the buyer universe, deals, and scoring results.

Input records (Deal, Buyer, Tracker, CallIntelligence, LearningRecord) are
immutable and every field except identifiers is optional. Construction runs
each field through the shared cleaners in buyerfit.entity.normalize, so
placeholder text ("n/a", "TBD") becomes None, NaN from DataFrames becomes
None, and list fields accept JSON arrays or comma separated strings.
"""
from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buyerfit.entity.normalize import clean_date, clean_dict, clean_list, clean_text
from buyerfit.utils.numbers import clean_number, round_half_up

Confidence = Literal["high", "medium", "low"]
Completeness = Literal["High", "Medium", "Low"]


def _text_or_joined(value) -> Optional[str]:
    # Some sources send a list where free text is expected
    if isinstance(value, (list, tuple)):
        items = clean_list(list(value))
        return ", ".join(items) if items else None
    return clean_text(value)


def _whole_number(value) -> Optional[int]:
    number = clean_number(value)
    return int(number) if number is not None else None


class Record(BaseModel):
    """Base for immutable input records."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _clean_id(cls, value):
        text = clean_text(value)
        if text is None:
            raise ValueError("id is required")
        return text


class Tracker(Record):
    """Industry-scoped buyer universe with its scoring weights (percentages)."""

    industry_name: Optional[str] = None
    geography_weight: Optional[int] = None
    size_weight: Optional[int] = None
    service_mix_weight: Optional[int] = None
    owner_goals_weight: Optional[int] = None
    kpi_scoring_config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("industry_name", mode="before")
    @classmethod
    def _clean_text_fields(cls, value):
        return clean_text(value)

    @field_validator(
        "geography_weight", "size_weight", "service_mix_weight", "owner_goals_weight",
        mode="before"
    )
    @classmethod
    def _clean_weights(cls, value):
        return _whole_number(value)

    @field_validator("kpi_scoring_config", mode="before")
    @classmethod
    def _clean_config(cls, value):
        return clean_dict(value)

    def weight(self, name: str, default: int) -> float:
        """
        Return a category weight as a fraction.

        Args:
            name: Weight field name, e.g. "geography_weight"
            default: Percentage used when the weight is missing or zero

        Returns:
            Weight / 100
        """
        value = getattr(self, name)
        return (value or default) / 100


class Deal(Record):
    """Acquisition target. Revenue and EBITDA amounts are in millions."""

    deal_name: Optional[str] = None
    tracker_id: Optional[str] = None
    revenue: Optional[float] = None
    ebitda_amount: Optional[float] = None
    ebitda_percentage: Optional[float] = None
    location_count: Optional[int] = None
    geography: List[str] = Field(default_factory=list)
    headquarters: Optional[str] = None
    service_mix: Optional[str] = None
    business_model: Optional[str] = None
    owner_goals: Optional[str] = None
    industry_type: Optional[str] = None
    industry_kpis: Dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "deal_name", "tracker_id", "headquarters", "service_mix", "business_model",
        "owner_goals", "industry_type",
        mode="before"
    )
    @classmethod
    def _clean_text_fields(cls, value):
        return _text_or_joined(value)

    @field_validator("revenue", "ebitda_amount", "ebitda_percentage", mode="before")
    @classmethod
    def _clean_numbers(cls, value):
        return clean_number(value)

    @field_validator("location_count", mode="before")
    @classmethod
    def _clean_locations(cls, value):
        return _whole_number(value)

    @field_validator("geography", mode="before")
    @classmethod
    def _clean_lists(cls, value):
        return clean_list(value)

    @field_validator("industry_kpis", mode="before")
    @classmethod
    def _clean_kpis(cls, value):
        return clean_dict(value)

    @property
    def locations(self) -> int:
        """Location count, treating missing as a single location."""
        return self.location_count or 1

    @property
    def effective_ebitda(self) -> Optional[float]:
        """EBITDA amount, derived from revenue and margin when not given."""
        if self.ebitda_amount is not None:
            return self.ebitda_amount
        if self.revenue is not None and self.ebitda_percentage is not None:
            return self.revenue * self.ebitda_percentage / 100
        return None


class Buyer(Record):
    """PE firm, optionally through an operating platform company."""

    tracker_id: Optional[str] = None
    pe_firm_name: str = ""
    platform_company_name: Optional[str] = None

    # Geography
    hq_state: Optional[str] = None
    hq_city: Optional[str] = None
    target_geographies: List[str] = Field(default_factory=list)
    geographic_footprint: List[str] = Field(default_factory=list)
    service_regions: List[str] = Field(default_factory=list)
    geographic_exclusions: List[str] = Field(default_factory=list)

    # Size
    min_revenue: Optional[float] = None
    max_revenue: Optional[float] = None
    revenue_sweet_spot: Optional[float] = None
    min_ebitda: Optional[float] = None
    max_ebitda: Optional[float] = None
    ebitda_sweet_spot: Optional[float] = None

    # Services
    services_offered: Optional[str] = None
    target_services: List[str] = Field(default_factory=list)
    service_mix_prefs: Optional[str] = None
    industry_exclusions: List[str] = Field(default_factory=list)

    # Owner fit / thesis
    owner_transition_goals: Optional[str] = None
    owner_roll_requirement: Optional[str] = None
    thesis_summary: Optional[str] = None
    key_quotes: List[str] = Field(default_factory=list)
    business_model_prefs: Optional[str] = None
    business_model_exclusions: Optional[str] = None

    # Acquisition history
    acquisition_appetite: Optional[str] = None
    acquisition_frequency: Optional[str] = None
    total_acquisitions: Optional[int] = None
    last_acquisition_date: Optional[date] = None
    deal_breakers: List[str] = Field(default_factory=list)

    @field_validator("pe_firm_name", mode="before")
    @classmethod
    def _clean_firm_name(cls, value):
        return clean_text(value) or ""

    @field_validator(
        "tracker_id", "platform_company_name", "hq_state", "hq_city",
        "services_offered", "service_mix_prefs", "owner_transition_goals",
        "owner_roll_requirement", "thesis_summary", "business_model_prefs",
        "business_model_exclusions", "acquisition_appetite", "acquisition_frequency",
        mode="before"
    )
    @classmethod
    def _clean_text_fields(cls, value):
        return _text_or_joined(value)

    @field_validator(
        "target_geographies", "geographic_footprint", "service_regions",
        "geographic_exclusions", "target_services", "industry_exclusions",
        "key_quotes", "deal_breakers",
        mode="before"
    )
    @classmethod
    def _clean_lists(cls, value):
        return clean_list(value)

    @field_validator(
        "min_revenue", "max_revenue", "revenue_sweet_spot",
        "min_ebitda", "max_ebitda", "ebitda_sweet_spot",
        mode="before"
    )
    @classmethod
    def _clean_numbers(cls, value):
        return clean_number(value)

    @field_validator("total_acquisitions", mode="before")
    @classmethod
    def _clean_count(cls, value):
        return _whole_number(value)

    @field_validator("last_acquisition_date", mode="before")
    @classmethod
    def _clean_date(cls, value):
        return clean_date(value)

    @property
    def display_name(self) -> str:
        """Platform company name, falling back to the PE firm."""
        return self.platform_company_name or self.pe_firm_name


class CallIntelligence(BaseModel):
    """Notes from one call with a buyer about a deal."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[str] = None
    buyer_id: str
    deal_id: Optional[str] = None
    call_summary: Optional[str] = None
    key_takeaways: List[str] = Field(default_factory=list)
    extracted_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "buyer_id", "deal_id", "call_summary", mode="before")
    @classmethod
    def _clean_text_fields(cls, value):
        return clean_text(value)

    @field_validator("key_takeaways", mode="before")
    @classmethod
    def _clean_lists(cls, value):
        return clean_list(value)

    @field_validator("extracted_data", mode="before")
    @classmethod
    def _clean_extracted(cls, value):
        return clean_dict(value)


class LearningRecord(BaseModel):
    """One past pass/rejection of a buyer, tagged with reason categories."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[str] = None
    buyer_id: str
    deal_id: Optional[str] = None
    rejection_categories: List[str] = Field(default_factory=list)

    @field_validator("id", "buyer_id", "deal_id", mode="before")
    @classmethod
    def _clean_text_fields(cls, value):
        return clean_text(value)

    @field_validator("rejection_categories", mode="before")
    @classmethod
    def _clean_lists(cls, value):
        return [item.lower() for item in clean_list(value)]


class CategoryScore(BaseModel):
    """Result of one category scorer."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    reasoning: str
    is_disqualified: bool = False
    disqualification_reason: Optional[str] = None
    confidence: Confidence = "medium"

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "reasoning": self.reasoning,
            "isDisqualified": self.is_disqualified,
            "disqualificationReason": self.disqualification_reason,
            "confidence": self.confidence,
        }


class GatingFactor(BaseModel):
    """Size multiplier that caps the achievable composite score."""

    model_config = ConfigDict(frozen=True)

    size_multiplier: float = Field(default=1.0, ge=0.0, le=1.05)


class EngagementSignals(BaseModel):
    """Buyer interest indicators mined from call notes."""

    model_config = ConfigDict(frozen=True)

    has_calls: bool = False
    site_visit_requested: bool = False
    financials_requested: bool = False
    ceo_involved: bool = False
    personal_connection: bool = False
    expressed_interest: bool = False
    engagement_score: int = 0
    signals: List[str] = Field(default_factory=list)

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "hasCalls": self.has_calls,
            "siteVisitRequested": self.site_visit_requested,
            "financialsRequested": self.financials_requested,
            "ceoInvolved": self.ceo_involved,
            "personalConnection": self.personal_connection,
            "expressedInterest": self.expressed_interest,
            "engagementScore": self.engagement_score,
            "signals": list(self.signals),
        }


class BuyerScore(BaseModel):
    """Full scoring result for one buyer against one deal."""

    model_config = ConfigDict(frozen=True)

    buyer_id: str
    buyer_name: str
    deal_id: str
    composite_score: int
    geography: CategoryScore
    size: CategoryScore
    services: CategoryScore
    owner_goals: CategoryScore
    gating: GatingFactor
    thesis_bonus: int = 0
    engagement_bonus: float = 0.0
    kpi_bonus: int = 0
    learning_penalty: int = 0
    overall_reasoning: str = ""
    is_disqualified: bool = False
    disqualification_reasons: List[str] = Field(default_factory=list)
    needs_review: bool = False
    review_reason: Optional[str] = None
    data_completeness: Completeness = "Low"
    deal_attractiveness: int = 50
    engagement: EngagementSignals = Field(default_factory=EngagementSignals)

    def to_api_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase response contract."""
        return {
            "buyerId": self.buyer_id,
            "buyerName": self.buyer_name,
            "compositeScore": self.composite_score,
            "geography": self.geography.to_api_dict(),
            "size": self.size.to_api_dict(),
            "services": self.services.to_api_dict(),
            "ownerGoals": self.owner_goals.to_api_dict(),
            "sizeMultiplier": self.gating.size_multiplier,
            "thesisBonus": self.thesis_bonus,
            "engagementBonus": round_half_up(self.engagement_bonus),
            "kpiBonus": self.kpi_bonus,
            "learningPenalty": self.learning_penalty,
            "overallReasoning": self.overall_reasoning,
            "isDisqualified": self.is_disqualified,
            "disqualificationReasons": list(self.disqualification_reasons),
            "needsReview": self.needs_review,
            "reviewReason": self.review_reason,
            "dataCompleteness": self.data_completeness,
            "dealAttractiveness": self.deal_attractiveness,
            "engagementSignals": self.engagement.to_api_dict(),
        }

    def to_row(self) -> Dict[str, Any]:
        """Flatten to the persisted buyer_deal_scores column names."""
        return {
            "buyer_id": self.buyer_id,
            "deal_id": self.deal_id,
            "composite_score": self.composite_score,
            "geography_score": self.geography.score,
            "service_score": self.services.score,
            "acquisition_score": self.size.score,
            "portfolio_score": self.owner_goals.score,
            "thesis_bonus": self.thesis_bonus,
            "fit_reasoning": self.overall_reasoning,
            "data_completeness": self.data_completeness,
        }
