"""Analytics read model for dashboards.

Example:
    >>> from studio_sales.analytics import derive_read_model, layout_waterfall
    >>> model = derive_read_model(body["data"])  # doctest: +SKIP
    >>> bars = layout_waterfall(model.waterfall_data)  # doctest: +SKIP
"""

from studio_sales.analytics.read_model import ReadModel, derive_read_model
from studio_sales.analytics.waterfall import WaterfallBar, layout_waterfall

__all__ = ["ReadModel", "WaterfallBar", "derive_read_model", "layout_waterfall"]
