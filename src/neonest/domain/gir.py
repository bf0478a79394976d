"""Domain models for the glucose infusion rate calculator."""

from dataclasses import dataclass
from enum import StrEnum


class DextroseCombo(StrEnum):
    """Dextrose concentration pair available on the ward."""

    TEN_ONLY = "10only"
    FIVE_TWENTY_FIVE = "5+25"
    FIVE_FIFTY = "5+50"
    TEN_TWENTY_FIVE = "10+25"
    TEN_FIFTY = "10+50"

    @property
    def concentrations(self) -> tuple[int, int]:
        """Return (low %, high %); both equal for a single concentration."""
        if self is DextroseCombo.TEN_ONLY:
            return 10, 10
        low, high = self.value.split("+")
        return int(low), int(high)


@dataclass(frozen=True)
class ComboSuggestion:
    """Alternative concentration pair able to reach the target GIR."""

    combo: DextroseCombo
    low_percent: int
    high_percent: int
    gir_min: float
    gir_max: float


@dataclass(frozen=True)
class GirResult:
    """Dextrose mix for a target glucose infusion rate."""

    valid: bool
    combo: DextroseCombo
    volume_ml: float
    rate_ml_per_hr: float
    single: bool
    single_gir: float
    required_dextrose_pct: float
    low_ml: float
    high_ml: float
    exact: bool
    gir_min: float
    gir_max: float
    clamped_low_ml: float
    clamped_high_ml: float
    achieved_dextrose_pct: float
    achieved_gir: float
    suggestions: tuple[ComboSuggestion, ...] = ()
