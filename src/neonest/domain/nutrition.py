"""Nutrition audit domain models."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FeedSource(StrEnum):
    """Milk given enterally."""

    EBM = "EBM"
    FORMULA = "Formula"
    MIXED = "Mixed"


class EntryMode(StrEnum):
    """How a daily amount was entered."""

    PER_FEED = "feed"
    PER_DAY = "day"


@dataclass(frozen=True)
class Nutrient:
    """Reference content and recommended range for one nutrient.

    ``breast_milk`` and ``formula`` are per 100 mL, ``fortifier`` is per gram.
    Ranges are (low, high) per kg per day unless ``per_day`` is set.
    """

    key: str
    name: str
    unit: str
    breast_milk: float
    formula: float
    fortifier: float
    aap: tuple[float, float] | None
    espghan: tuple[float, float] | None
    supplement: bool = False
    per_day: bool = False


class NutrientOverride(BaseModel):
    """User override of a nutrient reference row."""

    bm: float | None = None
    fm: float | None = None
    hm: float | None = None
    aap: tuple[float, float] | None = None
    esp: tuple[float, float] | None = None


class NutritionAuditInputs(BaseModel):
    """Feeding and supplement details for one audit."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore", allow_inf_nan=False
    )

    wt_now: float = Field(default=1500, alias="wtNow")
    wt_last: float = Field(default=1400, alias="wtLast")
    mode: EntryMode = EntryMode.PER_DAY
    per_feed: float = Field(default=15, alias="perFeed")
    feeds_per_day: float = Field(default=8, alias="feedsPerDay")
    total_ml_kg: float = Field(default=150, alias="totalMlKg")
    feed_src: FeedSource = Field(default=FeedSource.EBM, alias="feedSrc")
    ebm_pct: float = Field(default=70, alias="ebmPct")
    hmf_mode: EntryMode = Field(default=EntryMode.PER_DAY, alias="hmfMode")
    hmf_per_feed: float = Field(default=0, alias="hmfPerFeed")
    hmf_per_day: float = Field(default=0, alias="hmfPerDay")
    ca_ml: float = Field(default=0, alias="caMl")
    ca_conc: float = Field(default=16, alias="caConc")
    fe_ml: float = Field(default=0, alias="feMl")
    fe_conc: float = Field(default=10, alias="feConc")
    po4_ml: float = Field(default=0, alias="po4Ml")
    po4_conc: float = Field(default=30, alias="po4Conc")
    vitd_iu: float = Field(default=400, alias="vitdIU")


@dataclass(frozen=True)
class NutrientRow:
    """Audited intake of one nutrient."""

    nutrient: Nutrient
    from_ebm: float
    from_formula: float
    from_fortifier: float
    from_supplement: float
    total: float
    per_kg: float
    status: str


@dataclass(frozen=True)
class NutritionAudit:
    """Result of a nutrition audit."""

    rows: tuple[NutrientRow, ...]
    feed_ml_kg: float
    total_feed_ml: float
    ebm_ml: float
    formula_ml: float
    fortifier_g: float
    weight_gain: float
    protein_energy_ratio: float
    weight_kg: float

    def row(self, key: str) -> NutrientRow | None:
        """Return the row for a nutrient key."""
        for entry in self.rows:
            if entry.nutrient.key == key:
                return entry
        return None
