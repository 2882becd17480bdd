"""Sequence evaluation: score a manifest on pacing, variety, flow and adherence.

Expected durations, transitions and camera moves are re-derived here from
the raw style pack rules. Nothing in this module calls into the planner,
so a planner bug shows up as a lower score instead of being agreed with,
and hand-edited manifests are scored on the same terms.
"""

import logging
import math
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..catalog import Catalog, default_catalog
from ..errors import InvalidArgumentError
from ..models.catalog import CameraRules, StylePack, TransitionRules
from ..models.manifest import ManifestEntry, SequenceManifest, TransitionIn
from ..models.scene import CameraMove, IntentTag, MotionEnergy, Scene, coerce_scene

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Finding severity, most urgent first."""
    WARNING = "warning"
    INFO = "info"
    SUGGESTION = "suggestion"


PACING = "pacing"
VARIETY = "variety"
FLOW = "flow"
ADHERENCE = "adherence"

DIMENSION_WEIGHTS = {PACING: 0.25, VARIETY: 0.25, FLOW: 0.25, ADHERENCE: 0.25}
ENERGY_NUMERIC = {
    MotionEnergy.STATIC: 0,
    MotionEnergy.SUBTLE: 1,
    MotionEnergy.MODERATE: 2,
    MotionEnergy.HIGH: 3,
}
UNKNOWN_ENERGY_NUMERIC = 1

# Sequences this short are never penalized for pacing or variety
MIN_SCORED_SCENES = 3

# Pacing
PACING_TOLERANCE_S = 0.5
PACING_WARNING_S = 1.0
PACING_FULL_PENALTY_SPAN_S = 1.5
MAX_SCENE_PENALTY = 100
MAX_HOLD_PENALTY = 15
LOOP_RANGE_BONUS = 5
LOOP_RANGE_PENALTY = 5
LOOP_RANGE_SLACK_S = 5

# Variety
SHOT_RUN_PENALTY = 10
SHOT_LONG_RUN_PENALTY = 25
ADJACENT_CONTENT_PENALTY = 20
WEIGHT_DOMINANCE_RATIO = 0.8
WEIGHT_DOMINANCE_PENALTY = 30
FLAT_ENERGY_PENALTY = 40
ENERGY_SPREAD_BONUS = 10
ENERGY_SPREAD_LEVELS = 3

# Flow
FLOW_WEIGHTS = {"energy_arc": 0.4, "intent": 0.3, "transitions": 0.3}
NEUTRAL_SCORE = 60
PEAK_WINDOW = (0.3, 0.7)
EARLY_PEAK = 0.15
EARLY_PEAK_WITH_HERO_SCORE = 80
EARLY_PEAK_SCORE = 40
LATE_PEAK_SCORE = 70
FLAT_ARC_SCORE = 40
OPENING_POINTS = 33
CLOSING_POINTS = 33
HERO_POINTS = 34

# Adherence: an average deviation of this many seconds scores zero
DURATION_ZERO_SCORE_S = 3.0

LOOP_TIME_PATTERN = re.compile(r"^(\d+)-(\d+)s?$")
UNIVERSAL_MOVES = {"static", "drift"}


@dataclass
class Finding:
    """One observation about the sequence."""

    severity: Severity
    dimension: str
    message: str
    scene_index: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        if self.scene_index is None:
            del data["scene_index"]
        return data


@dataclass
class DimensionScore:
    score: int
    findings: List[Finding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"score": self.score, "findings": [f.to_dict() for f in self.findings]}


@dataclass
class EvaluationResult:
    """Overall score, per-dimension scores and every finding."""

    score: int
    dimensions: Dict[str, DimensionScore]
    findings: List[Finding]

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "dimensions": {name: dim.to_dict() for name, dim in self.dimensions.items()},
            "findings": [f.to_dict() for f in self.findings],
        }


def _round_score(value: float) -> int:
    """Round half up and clamp to [0, 100]."""
    return int(max(0, min(100, math.floor(value + 0.5))))


# ── Re-derived expectations ──────────────────────────────────────────────────


def parse_loop_time_range(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse a loop time such as ``"12-16s"`` into ``(12, 16)``."""
    if not value or not isinstance(value, str):
        return None
    match = LOOP_TIME_PATTERN.match(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def scene_pack(scene: Optional[Scene], default: StylePack, catalog: Catalog) -> StylePack:
    """Effective pack for a scene. Unknown overrides quietly fall back to the default."""
    if scene is None:
        return default
    override = scene.meta.style_override
    if override and override in catalog.style_packs:
        return catalog.style_packs[override]
    return default


def expected_duration(energy: Optional[MotionEnergy], pack: StylePack) -> float:
    hold = pack.hold_durations.get(energy or MotionEnergy.MODERATE, pack.hold_durations[MotionEnergy.MODERATE])
    if pack.max_hold_duration is not None:
        return min(hold, pack.max_hold_duration)
    return hold


def expected_transition(
    rules: TransitionRules,
    previous: Scene,
    current: Scene,
    index: int,
) -> TransitionIn:
    """Transition the style rules call for at cut ``index``.

    Checked in order: pattern, on_same_weight, on_weight_change, on_intent,
    default.
    """
    if rules.pattern is not None and index % rules.pattern.every_n == 0:
        cycle = rules.pattern.cycle
        return TransitionIn(
            type=cycle[(index // rules.pattern.every_n - 1) % len(cycle)],
            duration_ms=rules.pattern.duration_ms,
        )

    before = previous.meta.visual_weight
    after = current.meta.visual_weight
    if before and after:
        if before == after and rules.on_same_weight:
            return rules.on_same_weight
        if before != after and rules.on_weight_change:
            return rules.on_weight_change

    if rules.on_intent and any(tag in current.meta.intent_tags for tag in rules.on_intent.tags):
        return rules.on_intent.transition

    return rules.default


def expected_camera(
    rules: CameraRules,
    scene: Scene,
    personality: str,
    catalog: Optional[Catalog] = None,
) -> Optional[CameraMove]:
    """Camera move the style rules call for, after the personality's veto.

    Checked in order: force_static, by_content_type, by_intent. Moves the
    personality does not list are dropped, except static and drift.
    """
    catalog = catalog or default_catalog()
    if rules.force_static:
        return CameraMove(move="static")

    move = rules.by_content_type.get(scene.meta.content_type) if scene.meta.content_type else None
    if move is None:
        move = next(
            (m for tag, m in rules.by_intent.items() if tag in scene.meta.intent_tags),
            None,
        )
    if move is None or move.move in UNIVERSAL_MOVES:
        return move

    profile = catalog.personalities.get(personality)
    allowed = {m.replace("-", "_") for m in profile.camera_behavior.allowed_movements} if profile else set()
    return move if move.move in allowed else None


# ── Dimension scorers ────────────────────────────────────────────────────────

Pairs = List[Tuple[int, ManifestEntry, Optional[Scene]]]


def _pairs(manifest: SequenceManifest, scene_map: Dict[str, Scene]) -> Pairs:
    return [(i, entry, scene_map.get(entry.scene)) for i, entry in enumerate(manifest.scenes)]


def _loop_time_findings(
    entries: Sequence[ManifestEntry],
    default: StylePack,
    catalog: Catalog,
) -> Tuple[int, List[Finding]]:
    """Score adjustment and findings for total duration against the loop-time range.

    Always measured against the sequence-level personality, even when
    scenes override their style.
    """
    personality = catalog.personalities.get(default.personality)
    loop_range = parse_loop_time_range(personality.loop_time) if personality else None
    if loop_range is None:
        return 0, []

    low, high = loop_range
    total = sum(entry.duration_s for entry in entries)
    if low <= total <= high:
        return LOOP_RANGE_BONUS, []

    outside = low - total if total < low else total - high
    finding = Finding(
        severity=Severity.INFO,
        dimension=PACING,
        message=f"Total duration ({total:.1f}s) outside personality loop_time range ({low}-{high}s)",
    )
    return (-LOOP_RANGE_PENALTY if outside > LOOP_RANGE_SLACK_S else 0), [finding]


def score_pacing(
    manifest: SequenceManifest,
    scene_map: Dict[str, Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> DimensionScore:
    """Per-scene hold deviation from the style, weighted by energy confidence."""
    catalog = catalog or default_catalog()
    default = catalog.style_pack(style)
    entries = manifest.scenes
    if not entries:
        return DimensionScore(100)

    adjustment, loop_findings = _loop_time_findings(entries, default, catalog)
    if len(entries) < MIN_SCORED_SCENES:
        return DimensionScore(100, loop_findings)

    findings: List[Finding] = []
    total_penalty = 0.0
    for i, entry, scene in _pairs(manifest, scene_map):
        if scene is None:
            continue
        pack = scene_pack(scene, default, catalog)
        energy = scene.meta.motion_energy or MotionEnergy.MODERATE
        expected = expected_duration(energy, pack)
        deviation = abs(entry.duration_s - expected)

        penalty = 0.0
        if deviation > PACING_TOLERANCE_S:
            penalty = min(
                MAX_SCENE_PENALTY,
                (deviation - PACING_TOLERANCE_S) * MAX_SCENE_PENALTY / PACING_FULL_PENALTY_SPAN_S,
            )
            penalty *= scene.meta.confidence.get("motion_energy", 1.0)

        if deviation > PACING_WARNING_S:
            findings.append(Finding(
                Severity.WARNING,
                PACING,
                f"Scene {i + 1} duration ({entry.duration_s:g}s) deviates from expected "
                f"({expected:g}s) for {energy.value} energy",
                i,
            ))

        if pack.max_hold_duration is not None and entry.duration_s > pack.max_hold_duration:
            findings.append(Finding(
                Severity.WARNING,
                PACING,
                f"Scene {i + 1} duration ({entry.duration_s:g}s) exceeds max hold "
                f"({pack.max_hold_duration:g}s)",
                i,
            ))
            penalty += MAX_HOLD_PENALTY

        total_penalty += penalty

    score = max(0.0, 100 - total_penalty / len(entries))
    score = min(100.0, max(0.0, score + adjustment))
    return DimensionScore(_round_score(score), findings + loop_findings)


def score_variety(manifest: SequenceManifest, scene_map: Dict[str, Scene]) -> DimensionScore:
    """Style-agnostic variety: shot size runs, content types, weight balance, energy spread."""
    if len(manifest.scenes) < MIN_SCORED_SCENES:
        return DimensionScore(100)
    known = [(i, entry, scene) for i, entry, scene in _pairs(manifest, scene_map) if scene]
    if len(known) < MIN_SCORED_SCENES:
        return DimensionScore(100)

    findings: List[Finding] = []

    # What reaches the screen is the manifest's grammar; fall back to the classified one
    grammars = [entry.shot_grammar or scene.meta.shot_grammar for _, entry, scene in known]
    sizes = [grammar.shot_size if grammar else None for grammar in grammars]
    shot_score = 100
    for k in range(len(sizes) - 1):
        if sizes[k] is None or sizes[k] != sizes[k + 1]:
            continue
        if k + 2 < len(sizes) and sizes[k + 2] == sizes[k]:
            shot_score -= SHOT_LONG_RUN_PENALTY
            findings.append(Finding(
                Severity.WARNING,
                VARIETY,
                f'3+ consecutive "{sizes[k].value}" shot size starting at scene {k + 1}',
                k,
            ))
        else:
            shot_score -= SHOT_RUN_PENALTY

    content_score = 100
    for k in range(len(known) - 1):
        current = known[k][2].meta.content_type
        if current and current == known[k + 1][2].meta.content_type:
            content_score -= ADJACENT_CONTENT_PENALTY
            findings.append(Finding(
                Severity.INFO,
                VARIETY,
                f'Adjacent scenes {k + 1}-{k + 2} share content_type "{current.value}"',
                k,
            ))

    weight_score = 100
    weights = Counter(scene.meta.visual_weight for _, _, scene in known if scene.meta.visual_weight)
    weighted_total = sum(weights.values())
    for weight, count in weights.items():
        if count / weighted_total > WEIGHT_DOMINANCE_RATIO:
            weight_score -= WEIGHT_DOMINANCE_PENALTY
            findings.append(Finding(
                Severity.INFO,
                VARIETY,
                f'Visual weight "{weight.value}" dominates '
                f"({_round_score(count / weighted_total * 100)}% of scenes)",
            ))

    energy_score = 100
    energies = Counter(scene.meta.motion_energy for _, _, scene in known if scene.meta.motion_energy)
    if len(energies) == 1:
        energy_score -= FLAT_ENERGY_PENALTY
        only = next(iter(energies))
        findings.append(Finding(
            Severity.WARNING,
            VARIETY,
            f'All scenes have same motion_energy "{only.value}"',
        ))
    elif len(energies) >= ENERGY_SPREAD_LEVELS:
        energy_score = min(100, energy_score + ENERGY_SPREAD_BONUS)

    subscores = [max(0, s) for s in (shot_score, content_score, weight_score, energy_score)]
    return DimensionScore(_round_score(sum(subscores) / 4), findings)


def _energy_arc(scenes: List[Scene], findings: List[Finding]) -> float:
    values = [ENERGY_NUMERIC.get(s.meta.motion_energy, UNKNOWN_ENERGY_NUMERIC) for s in scenes]
    if len(values) < 3:
        return NEUTRAL_SCORE

    if all(v == values[0] for v in values):
        findings.append(Finding(
            Severity.INFO, FLOW, "Flat energy arc: all scenes have same motion_energy"
        ))
        return FLAT_ARC_SCORE

    peak = values.index(max(values)) / (len(values) - 1)
    if PEAK_WINDOW[0] <= peak <= PEAK_WINDOW[1]:
        return 100
    if peak < EARLY_PEAK:
        if scenes[0].meta.has_any_tag(IntentTag.HERO, IntentTag.OPENING):
            return EARLY_PEAK_WITH_HERO_SCORE
        findings.append(Finding(
            Severity.WARNING, FLOW, "Energy peaks at the very start without hero/opening tag", 0
        ))
        return EARLY_PEAK_SCORE
    return LATE_PEAK_SCORE


def _intent_progression(scenes: List[Scene], findings: List[Finding]) -> float:
    tags = [set(s.meta.intent_tags) for s in scenes]
    landmarks = {IntentTag.OPENING, IntentTag.CLOSING, IntentTag.HERO}
    if not any(t & landmarks for t in tags):
        return NEUTRAL_SCORE

    total = len(tags)
    quarter = max(1, math.floor(total * 0.25))
    half = max(1, math.floor(total * 0.5))
    head, tail = tags[:quarter], tags[-quarter:]

    score = 0
    opening_first = any(IntentTag.OPENING in t for t in head)
    if opening_first:
        score += OPENING_POINTS
    elif any(IntentTag.OPENING in t for t in tail):
        findings.append(Finding(
            Severity.WARNING, FLOW, "Opening scene placed near the end of sequence", total - 1
        ))
    if any(IntentTag.CLOSING in t for t in tail):
        score += CLOSING_POINTS
    if any(IntentTag.HERO in t for t in tags[:half]):
        score += HERO_POINTS
    return score


def _transition_matches(actual: Optional[TransitionIn], expected: TransitionIn) -> bool:
    if actual is None:
        return expected.type == "hard_cut"
    return actual.type == expected.type


def _transition_mismatches(
    manifest: SequenceManifest,
    scene_map: Dict[str, Scene],
    default: StylePack,
    catalog: Catalog,
) -> Tuple[int, List[Tuple[int, Optional[TransitionIn], TransitionIn]]]:
    """Count checked cuts and list those that differ from the rules."""
    checked = 0
    mismatches = []
    entries = manifest.scenes
    for i in range(1, len(entries)):
        previous = scene_map.get(entries[i - 1].scene)
        current = scene_map.get(entries[i].scene)
        if previous is None or current is None:
            continue
        checked += 1
        rules = scene_pack(current, default, catalog).transitions
        expected = expected_transition(rules, previous, current, i)
        if not _transition_matches(entries[i].transition_in, expected):
            mismatches.append((i, entries[i].transition_in, expected))
    return checked, mismatches


def _percent(matching: int, total: int) -> int:
    return _round_score(matching / total * 100) if total else 100


def score_flow(
    manifest: SequenceManifest,
    scene_map: Dict[str, Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> DimensionScore:
    """Energy arc, intent progression and transition coherence."""
    catalog = catalog or default_catalog()
    default = catalog.style_pack(style)
    if len(manifest.scenes) <= 1:
        return DimensionScore(100)

    findings: List[Finding] = []
    scenes = [scene for _, _, scene in _pairs(manifest, scene_map) if scene]

    arc = _energy_arc(scenes, findings)
    intent = _intent_progression(scenes, findings) if scenes else NEUTRAL_SCORE

    checked, mismatches = _transition_mismatches(manifest, scene_map, default, catalog)
    for i, actual, expected in mismatches:
        findings.append(Finding(
            Severity.INFO,
            FLOW,
            f'Scene {i + 1} transition "{actual.type if actual else "none"}" '
            f'differs from expected "{expected.type}"',
            i,
        ))
    coherence = _percent(checked - len(mismatches), checked)

    score = (
        arc * FLOW_WEIGHTS["energy_arc"]
        + intent * FLOW_WEIGHTS["intent"]
        + coherence * FLOW_WEIGHTS["transitions"]
    )
    return DimensionScore(_round_score(score), findings)


def score_adherence(
    manifest: SequenceManifest,
    scene_map: Dict[str, Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> DimensionScore:
    """Camera, transition, shot grammar and duration agreement with the style."""
    catalog = catalog or default_catalog()
    default = catalog.style_pack(style)
    entries = manifest.scenes
    if not entries:
        return DimensionScore(100)

    findings: List[Finding] = []
    pairs = _pairs(manifest, scene_map)

    camera_checked = camera_matching = 0
    for i, entry, scene in pairs:
        if scene is None:
            continue
        pack = scene_pack(scene, default, catalog)
        expected = expected_camera(pack.camera_overrides, scene, pack.personality, catalog)
        actual = entry.camera_override
        camera_checked += 1
        if (expected is None and actual is None) or (
            expected is not None and actual is not None and expected.move == actual.move
        ):
            camera_matching += 1
        else:
            findings.append(Finding(
                Severity.WARNING,
                ADHERENCE,
                f'Scene {i + 1} camera "{actual.move if actual else "none"}" differs from '
                f'expected "{expected.move if expected else "none"}"',
                i,
            ))

    checked, mismatches = _transition_mismatches(manifest, scene_map, default, catalog)
    for i, actual, expected in mismatches:
        findings.append(Finding(
            Severity.WARNING,
            ADHERENCE,
            f'Scene {i + 1} transition "{actual.type if actual else "none"}" '
            f'differs from expected "{expected.type}"',
            i,
        ))

    grammar_checked = grammar_compliant = 0
    for i, entry, scene in pairs:
        grammar = entry.shot_grammar
        personality = scene_pack(scene, default, catalog).personality
        restrictions = catalog.shot_grammar.personality_restrictions.get(personality)
        if grammar is None or restrictions is None:
            continue
        grammar_checked += 1
        violations = [
            (axis, value)
            for axis, value, allowed in (
                ("shot_size", grammar.shot_size, restrictions.allowed_sizes),
                ("angle", grammar.angle, restrictions.allowed_angles),
                ("framing", grammar.framing, restrictions.allowed_framings),
            )
            if value is not None and value not in allowed
        ]
        for axis, value in violations:
            findings.append(Finding(
                Severity.WARNING,
                ADHERENCE,
                f'Scene {i + 1} {axis} "{value.value}" not allowed for {personality}',
                i,
            ))
        if not violations:
            grammar_compliant += 1

    deviation = sum(
        abs(entry.duration_s - expected_duration(scene.meta.motion_energy, scene_pack(scene, default, catalog)))
        for _, entry, scene in pairs
        if scene is not None
    )
    average = deviation / len(entries)
    duration_score = _round_score(max(0.0, 100 - average / DURATION_ZERO_SCORE_S * 100))

    subscores = (
        _percent(camera_matching, camera_checked),
        _percent(checked - len(mismatches), checked),
        _percent(grammar_compliant, grammar_checked),
        duration_score,
    )
    return DimensionScore(_round_score(sum(subscores) / 4), findings)


# ── Orchestration ────────────────────────────────────────────────────────────


def evaluate_sequence(
    manifest: SequenceManifest,
    scenes: Sequence[Scene],
    style: Optional[str] = None,
    catalog: Optional[Catalog] = None,
) -> EvaluationResult:
    """Score a manifest against its source scenes and a style.

    Args:
        manifest: Manifest to score. Never modified.
        scenes: Analyzed scenes the manifest references.
        style: Sequence-level style pack. Defaults to ``manifest.style``.
        catalog: Catalog supplying the style rules.

    Returns:
        The overall score, each dimension's score and all findings.

    Raises:
        InvalidInputError: If an item is not a scene object.
        InvalidArgumentError: If no style is available or it is unknown.
    """
    catalog = catalog or default_catalog()
    style = style or manifest.style
    if not style:
        raise InvalidArgumentError("evaluate_sequence requires a style")
    catalog.style_pack(style)

    scenes = [coerce_scene(scene, "evaluate_sequence") for scene in scenes]
    scene_map = {scene.scene_id: scene for scene in scenes if scene.scene_id}

    dimensions = {
        PACING: score_pacing(manifest, scene_map, style, catalog),
        VARIETY: score_variety(manifest, scene_map),
        FLOW: score_flow(manifest, scene_map, style, catalog),
        ADHERENCE: score_adherence(manifest, scene_map, style, catalog),
    }
    overall = _round_score(
        sum(dimensions[name].score * weight for name, weight in DIMENSION_WEIGHTS.items())
    )
    findings = [finding for dim in dimensions.values() for finding in dim.findings]

    logger.info(
        f"Evaluated {manifest.sequence_id}: {overall} "
        f"({', '.join(f'{name} {dim.score}' for name, dim in dimensions.items())})"
    )
    return EvaluationResult(score=overall, dimensions=dimensions, findings=findings)
