import yaml
import os
from typing import List, Optional, Dict, Literal
from pydantic import BaseModel, Field, field_validator, model_validator


class DatabaseConfig(BaseModel):
    url: Optional[str] = None


class LlmConfig(BaseModel):
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1024
    judge_model: str = "gpt-4o-mini"
    judge_temperature: float = 0.0
    request_timeout_seconds: float = 5.0
    max_retries: int = 2  # tenacity attempts after the first call


class ComparatorConfig(BaseModel):
    """Per-type comparison settings for the FieldComparator."""
    numeric_epsilon: float = 1e-9
    # field_name -> scale used instead of max(|a|, |b|)
    numeric_reference_ranges: Dict[str, float] = Field(default_factory=dict)
    date_horizon_days: int = 1826  # 5 years

    @field_validator('date_horizon_days')
    @classmethod
    def _positive_horizon(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("date_horizon_days must be positive")
        return v

    @field_validator('numeric_reference_ranges')
    @classmethod
    def _positive_ranges(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, scale in v.items():
            if scale <= 0:
                raise ValueError(f"numeric reference range for '{name}' must be positive")
        return v


class SemanticConfig(BaseModel):
    """Settings for AI-backed text comparison."""
    enabled: bool = True
    provider: Literal["embedding", "llm_judge"] = "embedding"
    timeout_ms: int = 1500
    # Upper bound on outstanding semantic calls across all pairs
    max_concurrent_calls: int = 8


class MatcherConfig(BaseModel):
    """
    Configuration for the MatchScorer.

    Handles field comparison settings, semantic matching and batch fan-out.
    """
    comparator: ComparatorConfig = Field(default_factory=ComparatorConfig)
    semantic: SemanticConfig = Field(default_factory=SemanticConfig)
    max_workers: int = 8  # pairs scored in parallel by rank_candidates
    min_score_threshold: float = 30.0  # default for filter_by_threshold

    # Category subtotals in MatchResult.category_scores
    geographic_fields: List[str] = Field(default_factory=lambda: [
        'cities', 'states', 'zip_codes', 'counties', 'primary_neighborhoods'
    ])
    performance_fields: List[str] = Field(default_factory=lambda: [
        'experience', 'years_experience', 'transactions', 'total_volume_12mo',
        'transactions_12mo', 'annual_loan_volume', 'qualification_score'
    ])


class DemandBand(BaseModel):
    """One competitor-count band: [min_competitors, max_competitors) -> points."""
    min_competitors: int
    max_competitors: Optional[int] = None  # None = unbounded
    points: float
    label: str

    def contains(self, count: int) -> bool:
        if count < self.min_competitors:
            return False
        return self.max_competitors is None or count < self.max_competitors


def _default_demand_bands() -> List[DemandBand]:
    # Labels follow the competition levels shown on the coverage dashboard
    return [
        DemandBand(min_competitors=0, max_competitors=10, points=10.0, label="Very Low"),
        DemandBand(min_competitors=10, max_competitors=25, points=18.0, label="Low"),
        DemandBand(min_competitors=25, max_competitors=50, points=25.0, label="Moderate"),
        DemandBand(min_competitors=50, max_competitors=100, points=15.0, label="High"),
        DemandBand(min_competitors=100, max_competitors=None, points=6.0, label="Very High"),
    ]


class QualityThresholds(BaseModel):
    excellent: float = 80.0
    good: float = 60.0
    fair: float = 40.0

    @model_validator(mode='after')
    def _ordered(self) -> 'QualityThresholds':
        if not (self.excellent >= self.good >= self.fair >= 0):
            raise ValueError("quality thresholds must satisfy excellent >= good >= fair >= 0")
        return self


class RecommendationThresholds(BaseModel):
    """Sub-score levels that trigger coverage recommendations."""
    show_below_quality: float = 80.0
    low_completeness: float = 30.0
    low_breadth: float = 20.0
    low_demand: float = 15.0
    high_demand: float = 20.0


class CoverageConfig(BaseModel):
    """
    Configuration for the CoverageScorer.

    completeness_max + breadth_max + demand_max must equal 100 so the
    composite quality score stays in [0, 100].
    """
    completeness_max: float = 40.0
    breadth_max: float = 35.0
    demand_max: float = 25.0

    # Presence points per dimension, summing to completeness_max
    completeness_zip_points: float = 15.0
    completeness_city_points: float = 15.0
    completeness_county_points: float = 10.0

    breadth_reference_count: int = 50
    breadth_curve: Literal["sqrt", "linear"] = "sqrt"

    demand_bands: List[DemandBand] = Field(default_factory=_default_demand_bands)
    quality_thresholds: QualityThresholds = Field(default_factory=QualityThresholds)
    recommendations: RecommendationThresholds = Field(default_factory=RecommendationThresholds)

    @model_validator(mode='after')
    def _check_caps(self) -> 'CoverageConfig':
        total = self.completeness_max + self.breadth_max + self.demand_max
        if abs(total - 100.0) > 1e-9:
            raise ValueError(f"sub-score caps must sum to 100, got {total}")

        presence = (
            self.completeness_zip_points
            + self.completeness_city_points
            + self.completeness_county_points
        )
        if abs(presence - self.completeness_max) > 1e-9:
            raise ValueError(
                f"completeness points must sum to completeness_max ({self.completeness_max}), got {presence}"
            )

        if self.breadth_reference_count <= 0:
            raise ValueError("breadth_reference_count must be positive")

        self._check_bands()
        return self

    def _check_bands(self) -> None:
        if not self.demand_bands:
            raise ValueError("at least one demand band is required")

        bands = sorted(self.demand_bands, key=lambda b: b.min_competitors)
        if bands[0].min_competitors != 0:
            raise ValueError("demand bands must start at 0 competitors")

        for prev, nxt in zip(bands, bands[1:]):
            if prev.max_competitors != nxt.min_competitors:
                raise ValueError(
                    f"demand bands must be contiguous: '{prev.label}' ends at "
                    f"{prev.max_competitors} but '{nxt.label}' starts at {nxt.min_competitors}"
                )
        if bands[-1].max_competitors is not None:
            raise ValueError("last demand band must be unbounded (max_competitors: null)")

        for band in bands:
            if not (0 <= band.points <= self.demand_max):
                raise ValueError(f"band '{band.label}' points must be within [0, {self.demand_max}]")

        self.demand_bands = bands


class CacheConfig(BaseModel):
    enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    password: Optional[str] = None
    ttl_seconds: int = 24 * 60 * 60


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LlmConfig = Field(default_factory=LlmConfig)
    matching: MatcherConfig = Field(default_factory=MatcherConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from a subdirectory), try the project root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data.setdefault('database', {})
        data['database']['url'] = env_db_url

    # Allow env var override for Redis URL
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        data.setdefault('cache', {})
        data['cache']['redis_url'] = env_redis_url

    # Allow env var overrides for the LLM endpoint
    env_llm_base_url = os.environ.get("LLM_BASE_URL")
    if env_llm_base_url:
        data.setdefault('llm', {})
        data['llm']['base_url'] = env_llm_base_url

    env_llm_api_key = os.environ.get("LLM_API_KEY")
    if env_llm_api_key:
        data.setdefault('llm', {})
        data['llm']['api_key'] = env_llm_api_key

    return AppConfig(**data)
