"""
Spark position adapter.

Spark is an Aave V3 fork: same view layout and action params, its own
view contract, market and action names.
"""

from forkooor.adapters.positions.aave_v3 import AaveV3Adapter


class SparkAdapter(AaveV3Adapter):
    protocol = "spark"
    version = ""

    view_key = "SPARK_VIEW"
    market_key = "SPARK_MARKET"
    action_prefix = "Spark"
