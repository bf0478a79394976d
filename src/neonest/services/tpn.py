"""TPN derivation engine.

Turns per-kilogram clinical targets into syringe volumes for one patient-day.
The engine is a pure function: it performs no I/O, keeps no state and reports
every clinical problem as a message instead of raising.
"""

from dataclasses import asdict

from neonest.domain.tpn import (
    AminoAcidSource,
    DextroseMix,
    FeedType,
    FortifierStrength,
    LineItem,
    Monitoring,
    SeparateInfusions,
    SodiumSource,
    SyringeBreakdown,
    SyringeCount,
    TPNBreakdown,
    TPNErrors,
    TPNInputs,
    TPNResult,
)
from neonest.services.formatting import is_shown, plain_number, round1

# Sodium per mL of N/5, N/2 and normal saline (mEq/mL).
_NA_PER_ML_N5 = 0.031
_NA_PER_ML_N2 = 0.077
_NA_PER_ML_NS = 0.154
_GLUCOSE_PER_ML_DEX10 = 0.1
# mg/kg/min to g/kg/day.
_GIR_TO_G_PER_DAY = 1.44
_PO4_MG_PER_ML_KPO4 = 93
_K_MEQ_PER_ML_KPO4 = 4.4
_CA_MG_PER_ML_GLUCONATE = 9.3
_MG_MEQ_PER_ML_MGSO4 = 4
_PENTAMIN_NA_PER_G_AA = 0.87
_PENTAMIN_K_PER_G_AA = 3 / 20
_DEXTROSE_TOLERANCE_ML = 0.05
_CENTRAL_LINE_DEXTROSE_PCT = 12.5
_REFERENCE_SYRINGE_ML = 50
_HOURS_PER_DAY = 24

_FORTIFIER_GRAMS_PER_100_ML = {
    FortifierStrength.NONE: 0,
    FortifierStrength.QUARTER: 1,
    FortifierStrength.HALF: 2,
    FortifierStrength.FULL: 4,
}

# Osmolar contribution per mL of each component (Osm/L).
_OSM_LIPID = 0.26
_OSM_AMINO_ACID = 0.885
_OSM_DEX_LOW = 0.555
_OSM_DEX_HIGH = 2.78
_OSM_SODIUM = 1.027
_OSM_POTASSIUM = 4


def calculate_tpn(inputs: TPNInputs) -> TPNResult:  # noqa: PLR0915
    """Derive syringe volumes and monitoring metrics for a prescription."""
    wt = inputs.weight_g / 1000
    errors = _structural_errors(inputs)
    if wt <= 0:
        return TPNErrors(errors=tuple(errors))

    ivm = inputs.ivm
    na_in_ivm = (
        inputs.ivm_n5 * _NA_PER_ML_N5
        + inputs.ivm_n2 * _NA_PER_ML_N2
        + inputs.ivm_ns * _NA_PER_ML_NS
    ) / wt
    glucose_in_ivm = inputs.ivm_dex10 * _GLUCOSE_PER_ML_DEX10
    tfv = inputs.tfr * wt
    feeds_ml = inputs.feeds * wt
    ivf_per_kg = inputs.tfr - inputs.feeds
    ivf_ml = ivf_per_kg * wt
    tpn_fluid = ivf_ml - ivm
    tpn_glucose = inputs.gir * wt * _GIR_TO_G_PER_DAY - glucose_in_ivm
    pot_phos_vol = inputs.po4 * wt / _PO4_MG_PER_ML_KPO4
    k_from_pp = _K_MEQ_PER_ML_KPO4 * pot_phos_vol / wt

    if tpn_fluid < 0:
        errors.append(
            f"TPN fluid volume is negative ({plain_number(round1(tpn_fluid))} mL). "
            f"IVM ({plain_number(ivm)} mL) exceeds available IV fluid "
            f"({plain_number(round1(ivf_ml))} mL)."
        )

    lipid_vol = 5 * inputs.lipid * wt
    mvi_vol = inputs.mvi * wt
    celcel_vol = inputs.celcel * wt
    s1_total = lipid_vol + mvi_vol + celcel_vol

    aa_vol = 10 * wt * inputs.amino_acid
    na_vol = _sodium_volume(inputs, na_in_ivm, wt)
    k_vol = _potassium_volume(inputs, k_from_pp, wt)
    ca_sep_vol = wt * inputs.calcium / _CA_MG_PER_ML_GLUCONATE
    ca_vol = ca_sep_vol if inputs.ca_via_tpn else 0
    mg_vol = inputs.magnesium * wt / _MG_MEQ_PER_ML_MGSO4
    pp_vol_in_tpn = pot_phos_vol if inputs.po4_via_tpn else 0

    fluid_for_glucose = (
        tpn_fluid
        - lipid_vol
        - aa_vol
        - na_vol
        - k_vol
        - ca_vol
        - pp_vol_in_tpn
        - mvi_vol
        - celcel_vol
    )
    if fluid_for_glucose < 0 and tpn_fluid >= 0:
        errors.append(
            "Insufficient fluid for dextrose "
            f"({plain_number(round1(fluid_for_glucose))} mL remaining). "
            "Reduce component doses or increase TFR."
        )

    dextrose = _solve_dextrose(inputs, fluid_for_glucose, tpn_glucose)
    low_name = f"{dextrose.low_percent}% Dextrose"
    high_name = f"{dextrose.high_percent}% Dextrose"
    if dextrose.low_ml < -_DEXTROSE_TOLERANCE_ML:
        errors.append(
            f"{low_name} volume is negative ({plain_number(round1(dextrose.low_ml))}"
            " mL). Try switching dextrose concentrations or adjust GIR."
        )
    if dextrose.high_ml < -_DEXTROSE_TOLERANCE_ML:
        errors.append(
            f"{high_name} volume is negative ({plain_number(round1(dextrose.high_ml))}"
            " mL). Try different dextrose concentrations or reduce GIR."
        )

    if errors:
        return TPNErrors(errors=tuple(errors))

    s2_total_full = (
        aa_vol + na_vol + k_vol + ca_vol + mg_vol + dextrose.low_ml + dextrose.high_ml
    )
    is_per_day = inputs.overfill > 1

    def line(label: str, volume: float, reference_total: float) -> LineItem:
        if is_per_day:
            return LineItem(label, volume, adjusted_ml=volume * inputs.overfill)
        per_50 = (
            volume * _REFERENCE_SYRINGE_ML / reference_total
            if reference_total > 0
            else 0
        )
        return LineItem(label, volume, per_50_ml=per_50)

    def syringe(
        lines: list[tuple[str, float]], total: float, show_per_50: bool = True
    ) -> SyringeBreakdown:
        items = []
        for label, volume in lines:
            if not is_shown(volume):
                continue
            if is_per_day or show_per_50:
                items.append(line(label, volume, total))
            else:
                items.append(LineItem(label, volume))
        return SyringeBreakdown(
            items=tuple(items),
            total_ml=total,
            rate_ml_per_hr=total / _HOURS_PER_DAY,
            show_per_50=show_per_50 and not is_per_day,
        )

    s1 = syringe(
        [("20% Lipid", lipid_vol), ("MVI", mvi_vol), ("Celcel", celcel_vol)],
        s1_total,
        show_per_50=s1_total > _REFERENCE_SYRINGE_ML,
    )
    additive_lines = [
        (_amino_acid_label(inputs.aa_source), aa_vol),
        (_sodium_label(inputs.na_source), na_vol),
        ("15% KCl", k_vol),
        ("10% Ca Gluconate", ca_vol),
        ("50% MgSO₄", mg_vol),
        ("KPO₄", pp_vol_in_tpn),
    ]
    dextrose_lines = [(low_name, dextrose.low_ml), (high_name, dextrose.high_ml)]
    if inputs.syringe_count == SyringeCount.THREE:
        s2 = syringe(
            additive_lines, aa_vol + na_vol + k_vol + ca_vol + mg_vol + pp_vol_in_tpn
        )
        s3 = syringe(dextrose_lines, dextrose.low_ml + dextrose.high_ml)
    else:
        s2 = syringe(additive_lines + dextrose_lines, s2_total_full + pp_vol_in_tpn)
        s3 = None

    osm_denominator = (
        lipid_vol + aa_vol + na_vol + k_vol + dextrose.low_ml + dextrose.high_ml
    )
    osm_numerator = (
        _OSM_LIPID * lipid_vol
        + _OSM_AMINO_ACID * aa_vol
        + _OSM_DEX_LOW * dextrose.low_ml
        + _OSM_DEX_HIGH * dextrose.high_ml
        + _OSM_SODIUM * na_vol
        + _OSM_POTASSIUM * k_vol
    )
    osm = osm_numerator / osm_denominator * 1000 if osm_denominator > 0 else 0
    cnr = (
        6.25 * (4.9 * inputs.gir + 9 * inputs.lipid) / inputs.amino_acid
        if inputs.amino_acid > 0
        else 0
    )
    dex_pct = tpn_glucose * 100 / s2_total_full if s2_total_full > 0 else 0
    feed_cal, feed_prot = _feed_contribution(inputs)

    warnings = []
    if dex_pct > _CENTRAL_LINE_DEXTROSE_PCT:
        warnings.append(f"Dextrose {dex_pct:.1f}% - consider central line.")
    if na_vol < 0:
        warnings.append(
            "Na volume slightly negative - Na via IVM/Pentamin may exceed target."
        )

    return TPNBreakdown(
        s1=s1,
        s2=s2,
        s3=s3,
        sep=SeparateInfusions(
            pp=0 if inputs.po4_via_tpn else pot_phos_vol,
            ca=0 if inputs.ca_via_tpn else ca_sep_vol,
        ),
        mon=Monitoring(
            tfv=tfv,
            feeds=feeds_ml,
            ivf_per_kg=ivf_per_kg,
            ivf_ml=ivf_ml,
            tpn=tpn_fluid,
            tpn_glucose=tpn_glucose,
            glucose_fluid=fluid_for_glucose,
            dex=dex_pct,
            cnr=cnr,
            osm=osm,
            cal=4 * inputs.amino_acid + 9 * inputs.lipid + 5 * inputs.gir + feed_cal,
            prot=inputs.amino_acid + feed_prot,
            na_ivm=na_in_ivm,
            glucose_ivm=glucose_in_ivm,
            k_pp=k_from_pp,
        ),
        dextrose=dextrose,
        warnings=tuple(warnings),
        is_per_day=is_per_day,
        overfill=inputs.overfill,
    )


def _structural_errors(inputs: TPNInputs) -> list[str]:
    """Collect every input consistency problem."""
    errors = []
    feeds = plain_number(inputs.feeds)
    tfr = plain_number(inputs.tfr)
    ivm = plain_number(inputs.ivm)
    if inputs.weight_g <= 0:
        errors.append("Weight must be greater than 0.")
    if inputs.feed_type == FeedType.NPO and inputs.feeds > 0:
        errors.append(
            f"Feed type is NPO but feeds entered as {feeds} mL/kg/d. "
            "Set feeds to 0 or change feed type."
        )
    if inputs.feeds > inputs.tfr:
        errors.append(
            f"Feeds ({feeds} mL/kg/d) exceed total fluid rate ({tfr} mL/kg/d). "
            "Reduce feeds or increase TFR."
        )
    ivm_sum = inputs.ivm_n5 + inputs.ivm_n2 + inputs.ivm_ns + inputs.ivm_dex10
    if inputs.ivm > 0 and ivm_sum > inputs.ivm:
        errors.append(
            f"IVM breakdown total ({plain_number(ivm_sum)} mL) exceeds IVM volume "
            f"({ivm} mL). Correct IVM breakdown or increase IVM."
        )
    if inputs.ivm == 0 and ivm_sum > 0:
        errors.append(
            f"IVM is 0 but sub-volumes total {plain_number(ivm_sum)} mL. "
            "Enter IVM volume or clear breakdown fields."
        )
    return errors


def _sodium_volume(inputs: TPNInputs, na_in_ivm: float, wt: float) -> float:
    """Volume of added sodium after IVM and Pentamin contributions."""
    target = inputs.sodium - na_in_ivm
    if inputs.aa_source == AminoAcidSource.PENTAMIN:
        target -= _PENTAMIN_NA_PER_G_AA * inputs.amino_acid
    if inputs.na_source == SodiumSource.CRL:
        return target * wt / 3
    return target * wt * 2


def _potassium_volume(inputs: TPNInputs, k_from_pp: float, wt: float) -> float:
    """Volume of 15% KCl after phosphate and Pentamin contributions."""
    target = inputs.potassium - k_from_pp
    if inputs.aa_source == AminoAcidSource.PENTAMIN:
        target -= _PENTAMIN_K_PER_G_AA * inputs.amino_acid
    return target * (wt / 2)


def _solve_dextrose(
    inputs: TPNInputs, fluid_ml: float, glucose_g: float
) -> DextroseMix:
    """Split the remaining fluid between a low and a high dextrose concentration.

    When the low concentration alone already delivers more glucose than needed
    and the high concentration is 50%, only the low concentration is used so the
    linear system never asks for a negative 50% volume.
    """
    low_percent = 5 if inputs.use5_dex else 10
    high_percent = 25 if inputs.use25_dex else 50
    low = low_percent / 100
    high = high_percent / 100

    if not inputs.use25_dex and low * fluid_ml > glucose_g:
        return DextroseMix(low_percent, high_percent, glucose_g / low, 0)

    denominator = high - low
    low_ml = (high * fluid_ml - glucose_g) / denominator if denominator != 0 else 0
    return DextroseMix(low_percent, high_percent, low_ml, fluid_ml - low_ml)


def _feed_contribution(inputs: TPNInputs) -> tuple[float, float]:
    """Return (kcal/kg/day, g/kg/day) delivered by feeds and fortifier."""
    if inputs.feed_type == FeedType.NPO:
        return 0, 0
    if inputs.feed_type == FeedType.FORMULA:
        cal_per_ml = inputs.formula_cal100 / 100
        prot_per_ml = inputs.formula_prot100 / 100
    else:
        cal_per_ml = inputs.ebm_cal100 / 100
        prot_per_ml = inputs.ebm_prot100 / 100
    fortifier_g_per_ml = _FORTIFIER_GRAMS_PER_100_ML[inputs.prenan_strength] / 100
    calories = inputs.feeds * (cal_per_ml + fortifier_g_per_ml * inputs.hmf_cal_per_g)
    protein = inputs.feeds * (prot_per_ml + fortifier_g_per_ml * inputs.hmf_prot_per_g)
    return calories, protein


def _sodium_label(source: SodiumSource) -> str:
    return "Conc. RL" if source == SodiumSource.CRL else "3% NaCl"


def _amino_acid_label(source: AminoAcidSource) -> str:
    return f"10% {source.value}"


def serialize_tpn_result(result: TPNResult) -> dict[str, object]:
    """Convert a result into a JSON-ready mapping."""
    if isinstance(result, TPNErrors):
        return {"errors": list(result.errors)}
    return asdict(result)
