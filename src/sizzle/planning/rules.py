"""Style pack rule interpreter.

Transition and camera rules are data; this module only knows the fixed
priority of each rule kind. Adding a style pack never requires a change
here.
"""

from typing import Optional

from ..models.catalog import CameraRules, TransitionRules
from ..models.manifest import TransitionIn
from ..models.scene import CameraMove, Scene

STATIC_CAMERA = CameraMove(move="static")


def pattern_transition(rules: TransitionRules, index: int) -> Optional[TransitionIn]:
    """Positional transition for the cut into scene ``index``, if the pattern fires."""
    pattern = rules.pattern
    if pattern is None or index % pattern.every_n != 0:
        return None
    position = (index // pattern.every_n - 1) % len(pattern.cycle)
    return TransitionIn(type=pattern.cycle[position], duration_ms=pattern.duration_ms)


def resolve_transition(
    rules: TransitionRules,
    previous: Scene,
    current: Scene,
    index: int,
) -> TransitionIn:
    """Pick the transition into ``current``.

    Priority: pattern, on_same_weight, on_weight_change, on_intent, default.

    Args:
        rules: Transition rules of the incoming scene's style pack.
        previous: Scene before the cut.
        current: Scene after the cut.
        index: Position of ``current`` in the ordered sequence (1-based cuts).

    Returns:
        The transition of the first rule that matches.
    """
    patterned = pattern_transition(rules, index)
    if patterned is not None:
        return patterned

    prev_weight = previous.meta.visual_weight
    curr_weight = current.meta.visual_weight
    both_known = prev_weight is not None and curr_weight is not None

    if rules.on_same_weight and both_known and prev_weight == curr_weight:
        return rules.on_same_weight

    if rules.on_weight_change and both_known and prev_weight != curr_weight:
        return rules.on_weight_change

    if rules.on_intent and current.meta.has_any_tag(*rules.on_intent.tags):
        return rules.on_intent.transition

    return rules.default


def resolve_camera(rules: CameraRules, scene: Scene) -> Optional[CameraMove]:
    """Pick the camera override for a scene.

    Priority: force_static, by_content_type, by_intent, then no override.
    ``by_intent`` entries are tried in rule order.
    """
    if rules.force_static:
        return STATIC_CAMERA

    content_type = scene.meta.content_type
    if content_type is not None and content_type in rules.by_content_type:
        return rules.by_content_type[content_type]

    for tag, move in rules.by_intent.items():
        if tag in scene.meta.intent_tags:
            return move

    return None
