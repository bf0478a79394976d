"""Domain models for the TPN derivation engine."""

from dataclasses import dataclass
from enum import IntEnum, StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FeedType(StrEnum):
    """Enteral feed currently given."""

    NPO = "NPO"
    EBM = "EBM/PDHM"
    FORMULA = "Formula"


class FortifierStrength(StrEnum):
    """Human milk fortifier strength added to feeds."""

    NONE = "None"
    QUARTER = "Quarter"
    HALF = "Half"
    FULL = "Full"


class SodiumSource(StrEnum):
    """Additive used to make up the sodium target."""

    NACL_3 = "3% NaCl"
    CRL = "CRL"


class AminoAcidSource(StrEnum):
    """Commercial 10% amino acid solution."""

    AMINOVEN = "Aminoven"
    PENTAMIN = "Pentamin"


class SyringeCount(IntEnum):
    """Number of syringes the prescription is split into."""

    TWO = 2
    THREE = 3


class TPNInputs(BaseModel):
    """Clinical prescription for one patient-day."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore", allow_inf_nan=False
    )

    weight_g: float = Field(default=1000, alias="weightG")
    tfr: float = 100
    feeds: float = 0
    ivm: float = 0
    amino_acid: float = Field(default=3, alias="aminoAcid")
    lipid: float = 3
    gir: float = 6
    sodium: float = 3
    potassium: float = 2
    calcium: float = 0
    magnesium: float = 0
    po4: float = 0
    ivm_n5: float = Field(default=0, alias="ivmN5")
    ivm_n2: float = Field(default=0, alias="ivmN2")
    ivm_ns: float = Field(default=0, alias="ivmNS")
    ivm_dex10: float = Field(default=0, alias="ivmDex10")
    feed_type: FeedType = Field(default=FeedType.NPO, alias="feedType")
    prenan_strength: FortifierStrength = Field(
        default=FortifierStrength.NONE, alias="prenanStrength"
    )
    na_source: SodiumSource = Field(default=SodiumSource.NACL_3, alias="naSource")
    aa_source: AminoAcidSource = Field(
        default=AminoAcidSource.AMINOVEN, alias="aaSource"
    )
    ca_via_tpn: bool = Field(default=True, alias="caViaTPN")
    po4_via_tpn: bool = Field(default=False, alias="po4ViaTPN")
    use5_dex: bool = Field(default=False, alias="use5Dex")
    use25_dex: bool = Field(default=False, alias="use25Dex")
    overfill: float = 1
    celcel: float = 0
    mvi: float = 1
    syringe_count: SyringeCount = Field(default=SyringeCount.TWO, alias="syringeCount")
    ebm_cal100: float = Field(default=67, alias="ebmCal100")
    formula_cal100: float = Field(default=78, alias="formulaCal100")
    ebm_prot100: float = Field(default=1.1, alias="ebmProt100")
    formula_prot100: float = Field(default=1.9, alias="formulaProt100")
    hmf_cal_per_g: float = Field(default=4, alias="hmfCalPerG")
    hmf_prot_per_g: float = Field(default=0.3, alias="hmfProtPerG")


@dataclass(frozen=True)
class LineItem:
    """Single component line in a syringe."""

    label: str
    volume_ml: float
    per_50_ml: float | None = None
    adjusted_ml: float | None = None


@dataclass(frozen=True)
class SyringeBreakdown:
    """Component lines, total and hourly rate for one syringe."""

    items: tuple[LineItem, ...]
    total_ml: float
    rate_ml_per_hr: float
    show_per_50: bool = True


@dataclass(frozen=True)
class SeparateInfusions:
    """Daily volumes given outside the syringes."""

    pp: float
    ca: float


@dataclass(frozen=True)
class DextroseMix:
    """Solved dextrose concentrations and volumes."""

    low_percent: int
    high_percent: int
    low_ml: float
    high_ml: float

    @property
    def glucose_g(self) -> float:
        return (
            self.low_ml * self.low_percent / 100
            + self.high_ml * self.high_percent / 100
        )


@dataclass(frozen=True)
class Monitoring:
    """Monitoring metrics derived from a prescription."""

    tfv: float
    feeds: float
    ivf_per_kg: float
    ivf_ml: float
    tpn: float
    tpn_glucose: float
    glucose_fluid: float
    dex: float
    cnr: float
    osm: float
    cal: float
    prot: float
    na_ivm: float
    glucose_ivm: float
    k_pp: float


@dataclass(frozen=True)
class TPNErrors:
    """Terminal result when the prescription cannot be computed."""

    errors: tuple[str, ...]


@dataclass(frozen=True)
class TPNBreakdown:
    """Full syringe breakdown for an error-free prescription."""

    s1: SyringeBreakdown
    s2: SyringeBreakdown
    s3: SyringeBreakdown | None
    sep: SeparateInfusions
    mon: Monitoring
    dextrose: DextroseMix
    warnings: tuple[str, ...]
    is_per_day: bool
    overfill: float


TPNResult = TPNErrors | TPNBreakdown
