"""
Feature heuristic scorer.

Estimates how well a container's declared features suit a payload, independent
of dimensions. Each applicable factor contributes 0-100 and the result is the
average over the factors actually evaluated (75 when none apply):

  - required capability flags (waterproof, shockproof, handle, wheels, lock)
  - padding / compartments, found by keyword in description, features or name
  - preferred material / color (case-insensitive substring)
  - container-to-payload weight ratio
  - protection level versus the level recommended for the payload category

This score is separate from the preferred-feature overlap used by the
compatibility scorer (see rules/feature_match.py).
"""

import logging
from dataclasses import dataclass, field

from casefit.errors import InvalidInputError
from casefit.models.container_item import ContainerItem, ProtectionLevel
from casefit.models.payload_item import PayloadItem

logger = logging.getLogger(__name__)

NEUTRAL_FEATURE_SCORE = 75

PADDING_KEYWORDS = ("padded", "padding", "foam", "cushion", "soft interior", "plush")
COMPARTMENT_KEYWORDS = ("compartment", "pocket", "divider", "section", "organizer")

# Pounds per unit
WEIGHT_UNITS_TO_LB = {
    "lb": 1.0,
    "lbs": 1.0,
    "kg": 2.20462,
    "g": 0.00220462,
    "oz": 0.0625,
}

_PROTECTION_TIERS = {
    ProtectionLevel.LOW: 0,
    ProtectionLevel.MEDIUM: 1,
    ProtectionLevel.HIGH: 2,
}

# category -> recommended level; type markers are substrings of the payload type
_HIGH_PROTECTION_CATEGORIES = {"synthesizer", "mixer"}
_HIGH_PROTECTION_TYPES = ("analog", "vintage")
_MEDIUM_PROTECTION_CATEGORIES = {"drum machine", "audio interface"}
_MEDIUM_PROTECTION_TYPES = ("digital",)
_LOW_PROTECTION_CATEGORIES = {"effects pedal"}
_LOW_PROTECTION_TYPES = ("pedal",)


@dataclass
class FeatureHeuristicOptions:
    """Which optional factors to evaluate."""

    require_waterproof: bool = False
    require_shockproof: bool = False
    require_handle: bool = False
    require_wheels: bool = False
    require_lock: bool = False
    require_padding: bool = False
    require_compartments: bool = False
    preferred_materials: list[str] = field(default_factory=list)
    preferred_colors: list[str] = field(default_factory=list)


@dataclass
class FeatureMatch:
    container: ContainerItem
    feature_score: int


def _normalize(value: str | None) -> str:
    return value.strip().lower() if value else ""


def _feature_texts(container: ContainerItem) -> list[str]:
    features = container.features or []
    if not isinstance(features, (list, tuple)):
        raise InvalidInputError(
            f"Container {container.id} features must be a list, got {type(features).__name__}"
        )
    texts = []
    for feature in features:
        if feature is None:
            continue
        if not isinstance(feature, str):
            raise InvalidInputError(
                f"Container {container.id} has a non-text feature: {feature!r}"
            )
        texts.append(feature.lower())
    return texts


def has_feature(container: ContainerItem, keywords) -> bool:
    """True if any keyword appears in the description, a feature or the name."""
    keywords = [k.lower() for k in keywords]
    description = _normalize(container.description)
    name = _normalize(container.name)

    if description and any(k in description for k in keywords):
        return True
    if any(k in feature for feature in _feature_texts(container) for k in keywords):
        return True
    return bool(name) and any(k in name for k in keywords)


def convert_weight_to_lb(value: float, unit: str | None) -> float:
    unit_key = _normalize(unit) or "lb"
    if unit_key not in WEIGHT_UNITS_TO_LB:
        raise InvalidInputError(
            f"Unsupported weight unit '{unit}'. Use one of: lb, kg, g, oz"
        )
    return value * WEIGHT_UNITS_TO_LB[unit_key]


def weight_ratio_score(payload: PayloadItem, container: ContainerItem) -> int | None:
    """Score the container/payload weight ratio; None when either weight is unknown."""
    if not payload.weight_value or not container.weight_value:
        return None
    if payload.weight_value < 0 or container.weight_value < 0:
        raise InvalidInputError("Weights must not be negative")

    payload_lb = convert_weight_to_lb(payload.weight_value, payload.weight_unit)
    container_lb = convert_weight_to_lb(container.weight_value, container.weight_unit)
    ratio = container_lb / payload_lb

    if ratio <= 0.5:
        return 100
    if ratio <= 0.75:
        return 75
    if ratio <= 1.0:
        return 50
    return 25


def recommended_protection_level(payload: PayloadItem) -> ProtectionLevel:
    """Protection level a payload of this category/type should get."""
    category = _normalize(payload.category)
    payload_type = _normalize(payload.type)

    if category in _HIGH_PROTECTION_CATEGORIES or any(t in payload_type for t in _HIGH_PROTECTION_TYPES):
        return ProtectionLevel.HIGH
    if category in _MEDIUM_PROTECTION_CATEGORIES or any(t in payload_type for t in _MEDIUM_PROTECTION_TYPES):
        return ProtectionLevel.MEDIUM
    if category in _LOW_PROTECTION_CATEGORIES or any(t in payload_type for t in _LOW_PROTECTION_TYPES):
        return ProtectionLevel.LOW
    return ProtectionLevel.MEDIUM


def protection_alignment_score(recommended: ProtectionLevel, actual: ProtectionLevel | None) -> int:
    if actual is None:
        return 25
    distance = abs(_PROTECTION_TIERS[recommended] - _PROTECTION_TIERS[ProtectionLevel(actual)])
    if distance == 0:
        return 100
    if distance == 1:
        return 75
    return 25


def _matches_preference(value: str | None, preferences: list[str]) -> bool:
    value = _normalize(value)
    return any(_normalize(p) and _normalize(p) in value for p in preferences)


def calculate_feature_score(
    payload: PayloadItem,
    container: ContainerItem,
    options: FeatureHeuristicOptions | None = None,
) -> int:
    """
    Feature-appropriateness score (0-100) for a payload/container pair.

    Raises:
        InvalidInputError: unknown weight unit or malformed feature list.
    """
    options = options or FeatureHeuristicOptions()
    contributions: list[int] = []

    required_flags = [
        (options.require_waterproof, container.waterproof),
        (options.require_shockproof, container.shockproof),
        (options.require_handle, container.has_handle),
        (options.require_wheels, container.has_wheels),
        (options.require_lock, container.has_lock),
    ]
    for required, present in required_flags:
        if required:
            contributions.append(100 if present else 0)

    if options.require_padding:
        contributions.append(100 if has_feature(container, PADDING_KEYWORDS) else 0)

    if options.require_compartments:
        contributions.append(100 if has_feature(container, COMPARTMENT_KEYWORDS) else 0)

    if options.preferred_materials and container.material:
        contributions.append(100 if _matches_preference(container.material, options.preferred_materials) else 0)

    if options.preferred_colors and container.color:
        contributions.append(100 if _matches_preference(container.color, options.preferred_colors) else 0)

    weight_score = weight_ratio_score(payload, container)
    if weight_score is not None:
        contributions.append(weight_score)

    recommended = recommended_protection_level(payload)
    contributions.append(protection_alignment_score(recommended, container.protection_level))

    if not contributions:
        return NEUTRAL_FEATURE_SCORE

    return round(sum(contributions) / len(contributions))


def match_features(
    payload: PayloadItem,
    containers: list[ContainerItem],
    options: FeatureHeuristicOptions | None = None,
) -> list[FeatureMatch]:
    """Rank containers by feature score, best first."""
    scored = [
        FeatureMatch(container=c, feature_score=calculate_feature_score(payload, c, options))
        for c in containers
    ]
    scored.sort(key=lambda m: m.feature_score, reverse=True)
    return scored


# --- Category-weighted appropriateness (used by the confidence estimator) ---

@dataclass(frozen=True)
class _Signal:
    points: int
    keywords: tuple = ()
    flag: str | None = None

    def present(self, container: ContainerItem) -> bool:
        if self.flag:
            return bool(getattr(container, self.flag))
        return has_feature(container, self.keywords)


_PADDING = ("padded", "padding", "foam")
_POCKETS = ("compartment", "pocket")

_DEFAULT_SIGNALS = (
    _Signal(40, keywords=_PADDING),
    _Signal(30, flag="has_handle"),
    _Signal(30, keywords=_POCKETS),
)

CATEGORY_SIGNALS = {
    "synthesizer": _DEFAULT_SIGNALS,
    "mixer": _DEFAULT_SIGNALS,
    "drum machine": (
        _Signal(30, keywords=_PADDING),
        _Signal(40, flag="shockproof"),
        _Signal(30, keywords=_POCKETS),
    ),
    "effects pedal": (
        _Signal(50, keywords=("pedalboard", "pedal board")),
        _Signal(30, keywords=("loop", "velcro", "hook and loop")),
        _Signal(20, keywords=("power", "supply")),
    ),
    "audio interface": (
        _Signal(30, keywords=_PADDING),
        _Signal(40, keywords=("cable", "compartment", "pocket")),
        _Signal(30, flag="waterproof"),
    ),
}


def category_feature_score(payload: PayloadItem, container: ContainerItem) -> int:
    """Category-specific feature appropriateness, capped at 100."""
    signals = CATEGORY_SIGNALS.get(_normalize(payload.category), _DEFAULT_SIGNALS)
    score = sum(signal.points for signal in signals if signal.present(container))
    return min(100, score)
