"""Bar geometry for the gross-to-net waterfall.

The first step starts at zero, every middle step spans from the running
total before it to the running total after it, and the "Net Sales" step is
drawn as an absolute bar from zero. The net bar is not checked against the
running total.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from studio_sales.analytics.read_model import WATERFALL_NET, WaterfallStep


@dataclass
class WaterfallBar:
    """A positioned waterfall bar.

    Attributes:
        name: Step name.
        start: Lower edge of the bar.
        end: Upper edge of the bar.
        value: Bar height (absolute for middle steps).
        kind: "positive", "negative" or "total".
        display_value: Signed step value shown as the label.
    """

    name: str
    start: float
    end: float
    value: float
    kind: str
    display_value: float


def layout_waterfall(steps: Sequence[WaterfallStep]) -> list[WaterfallBar]:
    """Compute bar positions for waterfall steps.

    Examples:
        >>> bars = layout_waterfall([WaterfallStep("Gross Sales", 100.0),
        ...                          WaterfallStep("Discounts", -10.0),
        ...                          WaterfallStep("Net Sales", 90.0)])
        >>> [(b.start, b.end, b.kind) for b in bars]
        [(0.0, 100.0, 'positive'), (90.0, 100.0, 'negative'), (0.0, 90.0, 'total')]
    """
    bars: list[WaterfallBar] = []
    cumulative = 0.0
    for i, step in enumerate(steps):
        if i == 0 or step.name == WATERFALL_NET:
            kind = "total" if step.name == WATERFALL_NET else "positive"
            bars.append(WaterfallBar(step.name, 0.0, step.value, step.value, kind, step.value))
            if i == 0:
                cumulative = step.value
        else:
            new_cumulative = cumulative + step.value
            positive = step.value >= 0
            bars.append(
                WaterfallBar(
                    name=step.name,
                    start=cumulative if positive else new_cumulative,
                    end=new_cumulative if positive else cumulative,
                    value=abs(step.value),
                    kind="positive" if positive else "negative",
                    display_value=step.value,
                )
            )
            cumulative = new_cumulative
    return bars
