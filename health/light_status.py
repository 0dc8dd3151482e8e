from core.models import IssueStatus, LightStatus, LightTier

# (lower bound, tier, lights) checked from the top down
LIGHT_TIERS = [
    (70, LightTier.CRITICAL, {"red": True}),
    (50, LightTier.ELEVATED, {"red": True, "red_blink": True, "yellow": True}),
    (30, LightTier.WARNING, {"yellow": True, "green": True}),
    (1, LightTier.LOW, {"green": True, "yellow_dim": True}),
    (0, LightTier.CLEAR, {"green": True}),
]


def probability_to_tier(max_probability):
    """
    Map the highest open fault probability (0-100) to a light tier.
    """
    for lower, tier, lights in LIGHT_TIERS:
        if max_probability >= lower:
            return tier, lights
    return LightTier.CLEAR, {"green": True}


def compute_light_status(issues) -> LightStatus:
    """
    Light Status
    ============
    Five-tier dashboard descriptor from a machine's issues.

    - FIXED issues are ignored
    - tier follows the highest fault probability
    - work_in_progress flags any IN_PROGRESS issue, whatever the tier
    """
    active = [i for i in issues if i.status is not IssueStatus.FIXED]

    if not active:
        return LightStatus(green=True)

    max_probability = max(i.fault_probability for i in active)
    tier, lights = probability_to_tier(max_probability)

    return LightStatus(
        work_in_progress=any(i.status is IssueStatus.IN_PROGRESS for i in active),
        max_probability=max_probability,
        tier=tier,
        **lights,
    )
