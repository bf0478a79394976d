"""Enteral nutrition audit against AAP and ESPGHAN recommendations."""

import json
import logging
from dataclasses import dataclass, replace

from pydantic import TypeAdapter, ValidationError

from neonest.domain.nutrition import (
    EntryMode,
    FeedSource,
    Nutrient,
    NutrientOverride,
    NutrientRow,
    NutritionAudit,
    NutritionAuditInputs,
)
from neonest.services.storage import KeyValueStore

NUTRITION_DB_KEY = "nutrition_db"

_LOW_FACTOR = 0.95
_HIGH_FACTOR = 1.05
_PTF_PROTEIN_THRESHOLD = 0.2

NUTRIENTS: tuple[Nutrient, ...] = (
    Nutrient("energy", "Energy", "kcal/kg", 52, 78, 4, (105, 130), (110, 135)),
    Nutrient("protein", "Protein", "g/kg", 0.95, 1.9, 0.3, (3.5, 4.0), (3.5, 4.0)),
    Nutrient("fat", "Fat", "g/kg", 3.6, 3.8, 0.1, (5.0, 7.0), (4.8, 6.6)),
    Nutrient("carb", "Carbohydrate", "g/kg", 6.7, 8.1, 0.4, (10.0, 14), (11.6, 13.2)),
    Nutrient(
        "ca", "Calcium", "mg/kg/d", 26, 95, 15.93, (200, 210), (120, 140),
        supplement=True,
    ),
    Nutrient("po4", "Phosphorus", "mg/kg/d", 13, 48, 8.76, (100, 110), (60, 90)),
    Nutrient(
        "fe", "Iron", "mg/kg/d", 0.12, 1.67, 0.36, (2.0, 3.0), (2.0, 3.0),
        supplement=True,
    ),
    Nutrient(
        "vitd", "Vitamin D", "IU/d", 2, 160, 28, (400, 400), (800, 1000),
        per_day=True,
    ),
    Nutrient("na", "Sodium", "mEq/kg/d", 1.4, 1.03, 0.32, (2.0, 3.0), (3.0, 5.0)),
    Nutrient("k", "Potassium", "mEq/kg/d", 2.4, 0.74, 0.25, (1.7, 2.5), (3.0, 5.0)),
    Nutrient("mg", "Magnesium", "mg/kg/d", 3, 3.7, 0.8, None, (8.0, 15.0)),
    Nutrient("zn", "Zinc", "mg/kg/d", 0.33, 0.28, 0.19, (0.6, 1.0), (1.1, 2.0)),
    Nutrient("vita", "Vitamin A", "IU/kg/d", 50, 505, 221.6, (92, 270), (1330, 3300)),
    Nutrient("vite", "Vitamin E", "IU/kg/d", 1.5, 1.11, 1.12, (1.3, 1.3), (2.2, 11)),
    Nutrient("vitk", "Vitamin K", "mcg/kg/d", 0.2, 6.67, 1.5, (4.8, 4.8), (4.4, 28)),
    Nutrient("vitc", "Vitamin C", "mg/kg/d", 10.6, 6.67, 3.75, (42, 42), (11, 46)),
    Nutrient("folic", "Folic acid", "mcg/kg/d", 3.3, 16.7, 7.5, (40, 40), (35, 100)),
    Nutrient("cu", "Copper", "mcg/kg/d", 73, 35.6, 10, (100, 108), (100, 132)),
)

_OVERRIDES_ADAPTER = TypeAdapter(dict[str, NutrientOverride])

_logger = logging.getLogger(__name__)


def merge_nutrient_table(
    overrides: dict[str, NutrientOverride] | None,
    table: tuple[Nutrient, ...] = NUTRIENTS,
) -> tuple[Nutrient, ...]:
    """Apply per-nutrient overrides to the reference table."""
    if not overrides:
        return table
    merged = []
    for nutrient in table:
        override = overrides.get(nutrient.key)
        if override is None:
            merged.append(nutrient)
            continue
        merged.append(
            replace(
                nutrient,
                breast_milk=_pick(override.bm, nutrient.breast_milk),
                formula=_pick(override.fm, nutrient.formula),
                fortifier=_pick(override.hm, nutrient.fortifier),
                aap=override.aap or nutrient.aap,
                espghan=override.esp or nutrient.espghan,
            )
        )
    return tuple(merged)


def audit_nutrition(
    inputs: NutritionAuditInputs, table: tuple[Nutrient, ...] = NUTRIENTS
) -> NutritionAudit | None:
    """Compute daily nutrient intake from feeds, fortifier and supplements."""
    wt = inputs.wt_now / 1000
    if wt <= 0:
        return None

    if inputs.mode == EntryMode.PER_FEED:
        total_feed_ml = inputs.per_feed * inputs.feeds_per_day
    else:
        total_feed_ml = inputs.total_ml_kg * wt
    if inputs.feed_src == FeedSource.EBM:
        ebm_ml, formula_ml = total_feed_ml, 0.0
    elif inputs.feed_src == FeedSource.FORMULA:
        ebm_ml, formula_ml = 0.0, total_feed_ml
    else:
        ebm_ml = total_feed_ml * inputs.ebm_pct / 100
        formula_ml = total_feed_ml * (100 - inputs.ebm_pct) / 100
    if inputs.hmf_mode == EntryMode.PER_FEED:
        fortifier_g = inputs.hmf_per_feed * inputs.feeds_per_day
    else:
        fortifier_g = inputs.hmf_per_day

    supplements = {
        "ca": inputs.ca_ml * inputs.ca_conc,
        "fe": inputs.fe_ml * inputs.fe_conc,
        "vitd": inputs.vitd_iu,
        "po4": inputs.po4_ml * inputs.po4_conc,
    }
    rows = []
    for nutrient in table:
        from_ebm = ebm_ml * nutrient.breast_milk / 100
        from_formula = formula_ml * nutrient.formula / 100
        from_fortifier = fortifier_g * nutrient.fortifier
        from_supplement = supplements.get(nutrient.key, 0.0)
        total = from_ebm + from_formula + from_fortifier + from_supplement
        per_kg = total if nutrient.per_day else total / wt
        rows.append(
            NutrientRow(
                nutrient=nutrient,
                from_ebm=from_ebm,
                from_formula=from_formula,
                from_fortifier=from_fortifier,
                from_supplement=from_supplement,
                total=total,
                per_kg=per_kg,
                status=_status(per_kg, nutrient.espghan),
            )
        )

    audit = NutritionAudit(
        rows=tuple(rows),
        feed_ml_kg=total_feed_ml / wt,
        total_feed_ml=total_feed_ml,
        ebm_ml=ebm_ml,
        formula_ml=formula_ml,
        fortifier_g=fortifier_g,
        weight_gain=weight_gain(inputs.wt_now, inputs.wt_last),
        protein_energy_ratio=0,
        weight_kg=wt,
    )
    energy = audit.row("energy")
    protein = audit.row("protein")
    if energy and protein and energy.per_kg > 0:
        audit = replace(
            audit, protein_energy_ratio=protein.per_kg / energy.per_kg * 1000
        )
    return audit


def weight_gain(now_g: float, last_g: float) -> float:
    """Weekly weight gain in g/kg/day, normalised to the average weight."""
    if last_g <= 0:
        return 0
    return (now_g - last_g) / ((now_g + last_g) / 2) * 1000 / 7


def fortifier_label(hmf_prot_per_g: float) -> str:
    """Protein-targeted fortifiers carry under 0.2 g protein per gram."""
    return "PTF" if hmf_prot_per_g < _PTF_PROTEIN_THRESHOLD else "HMF"


def _status(per_kg: float, recommended: tuple[float, float] | None) -> str:
    if recommended is None:
        return "ok"
    if per_kg < recommended[0] * _LOW_FACTOR:
        return "low"
    if per_kg > recommended[1] * _HIGH_FACTOR:
        return "high"
    return "ok"


def _pick(value: float | None, fallback: float) -> float:
    return fallback if value is None else value


@dataclass
class NutrientTableService:
    """Persist user overrides of the nutrient reference table."""

    store: KeyValueStore

    def load_overrides(self) -> dict[str, NutrientOverride] | None:
        """Return stored overrides, or None when unset or unreadable."""
        raw = self.store.get(NUTRITION_DB_KEY)
        if not raw:
            return None
        try:
            return _OVERRIDES_ADAPTER.validate_json(raw) or None
        except ValidationError:
            _logger.warning("Ignoring unreadable nutrient overrides")
            return None

    def load_table(self) -> tuple[Nutrient, ...]:
        """Return the reference table with stored overrides applied."""
        return merge_nutrient_table(self.load_overrides())

    def save_overrides(self, overrides: dict[str, NutrientOverride]) -> None:
        """Store overrides for later audits."""
        payload = {
            key: override.model_dump(exclude_none=True)
            for key, override in overrides.items()
        }
        self.store.set(NUTRITION_DB_KEY, json.dumps(payload))

    def reset(self) -> None:
        """Drop overrides and return to factory values."""
        self.store.delete(NUTRITION_DB_KEY)
