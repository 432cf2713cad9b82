"""
Human-readable summary of a search result.
"""

from arcellipse.models import ArcSpec
from arcellipse.tracer import get_tracer, trace


@trace(label="format_summary")
def format_summary(request, result):
    """
    Build the text summary written next to result.json.

    Lists the request, the attempt counts, skip reasons and the best
    ellipse with its rig lengths.
    """
    tracer = get_tracer()

    lines = ["Arc Ellipse Search Report", "=" * 40, ""]

    lines.append(f"Radius: {request.radius:g}")
    lines.append(f"Central angle: {request.central_angle_deg:g} deg")
    if result.attempts:
        arc = ArcSpec(radius=request.radius, central_angle_deg=request.central_angle_deg)
        lines.append(f"Chord: {arc.chord:.4f}")
        lines.append(f"Sagitta: {arc.sagitta:.4f}")
    lines.append(f"Tolerance: {request.tolerance:g}")
    lines.append(f"Objective: {request.objective.value}")
    lines.append("")

    accepted = result.accepted_attempts
    lines.append(f"Attempts: {len(result.attempts)}")
    lines.append(f"Accepted: {len(accepted)}")
    lines.append(f"Rejected: {len(result.attempts) - len(accepted)}")
    lines.append("")

    if result.skip_counts:
        lines.append("SKIPPED CELLS:")
        lines.append("-" * 40)
        for reason, count in result.skip_counts.items():
            lines.append(f"  {reason}: {count}")
        lines.append("")

    best = result.best_attempt
    if best is None:
        lines.append("No accepted ellipse. Try a larger tolerance or a finer grid.")
    else:
        lines.append("BEST ELLIPSE:")
        lines.append("-" * 40)
        lines.append(format_attempt(best))
        if best.rig_lengths is not None:
            rig = best.rig_lengths
            lines.append(f"  L1 = {rig.l1:.4f}  L2 = {rig.l2:.4f}  L3 = {rig.l3:.4f}")

    tracer.event(f"Summary built: {len(result.attempts)} attempts, best={best.id if best else None}")

    return "\n".join(lines) + "\n"


def format_attempt(attempt):
    """Format a single attempt for display."""
    status = "PASS" if attempt.accepted else "FAIL"
    return (
        f"[{status}] {attempt.id}: a={attempt.a:.4f} b={attempt.b:.4f} "
        f"h={attempt.h:.4f} max_error={attempt.max_error:.5f}"
    )
