"""Glucose infusion rate solver for a two-concentration dextrose mix."""

from neonest.domain.gir import ComboSuggestion, DextroseCombo, GirResult

# mg/kg/min per (% dextrose x mL/day / kg).
_GIR_FACTOR = 144
_TOLERANCE = 0.05


def gir_for(percent: float, volume_ml: float, weight_kg: float) -> float:
    """GIR delivered by a volume of a single dextrose concentration."""
    return percent * volume_ml / (weight_kg * _GIR_FACTOR)


def solve_gir(
    weight_g: float,
    fluid_per_kg: float,
    target_gir: float,
    combo: DextroseCombo = DextroseCombo.TEN_FIFTY,
) -> GirResult:
    """Solve the dextrose split that delivers ``target_gir`` in the daily fluid."""
    low, high = combo.concentrations
    single = low == high
    weight_kg = weight_g / 1000
    volume = fluid_per_kg * weight_kg
    valid = weight_kg > 0 and volume > 0
    if not valid:
        return GirResult(
            valid=False,
            combo=combo,
            volume_ml=volume,
            rate_ml_per_hr=volume / 24,
            single=single,
            single_gir=0,
            required_dextrose_pct=0,
            low_ml=0,
            high_ml=0,
            exact=False,
            gir_min=0,
            gir_max=0,
            clamped_low_ml=0,
            clamped_high_ml=0,
            achieved_dextrose_pct=0,
            achieved_gir=0,
        )

    single_gir = gir_for(low, volume, weight_kg)
    required = target_gir * weight_kg * _GIR_FACTOR / volume
    high_ml = 0 if single else (required - low) * volume / (high - low)
    low_ml = volume - high_ml
    exact = not single and low_ml >= -_TOLERANCE and high_ml >= -_TOLERANCE
    gir_min = 0 if single else gir_for(low, volume, weight_kg)
    gir_max = 0 if single else gir_for(high, volume, weight_kg)

    clamped_high = max(0, min(volume, high_ml))
    clamped_low = volume - clamped_high
    achieved_pct = (low * clamped_low + high * clamped_high) / volume

    suggestions: tuple[ComboSuggestion, ...] = ()
    if not single and not exact:
        suggestions = tuple(_suggest(target_gir, volume, weight_kg, exclude=combo))

    return GirResult(
        valid=True,
        combo=combo,
        volume_ml=volume,
        rate_ml_per_hr=volume / 24,
        single=single,
        single_gir=single_gir,
        required_dextrose_pct=required,
        low_ml=low_ml,
        high_ml=high_ml,
        exact=exact,
        gir_min=gir_min,
        gir_max=gir_max,
        clamped_low_ml=clamped_low,
        clamped_high_ml=clamped_high,
        achieved_dextrose_pct=achieved_pct,
        achieved_gir=gir_for(achieved_pct, volume, weight_kg),
        suggestions=suggestions,
    )


def _suggest(
    target_gir: float, volume: float, weight_kg: float, exclude: DextroseCombo
) -> list[ComboSuggestion]:
    """Other concentration pairs whose GIR range covers the target."""
    suggestions = []
    for combo in DextroseCombo:
        if combo in {exclude, DextroseCombo.TEN_ONLY}:
            continue
        low, high = combo.concentrations
        gir_min = gir_for(low, volume, weight_kg)
        gir_max = gir_for(high, volume, weight_kg)
        if gir_min - _TOLERANCE <= target_gir <= gir_max + _TOLERANCE:
            suggestions.append(
                ComboSuggestion(
                    combo=combo,
                    low_percent=low,
                    high_percent=high,
                    gir_min=gir_min,
                    gir_max=gir_max,
                )
            )
    return suggestions
