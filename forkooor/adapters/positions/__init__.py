from forkooor.adapters.positions.aave_v3 import AaveV3Adapter
from forkooor.adapters.positions.compound_v3 import CompoundV3Adapter
from forkooor.adapters.positions.curveusd import CurveUsdAdapter
from forkooor.adapters.positions.fluid import FluidAdapter
from forkooor.adapters.positions.liquity import LiquityAdapter
from forkooor.adapters.positions.liquity_v2 import LiquityV2Adapter
from forkooor.adapters.positions.maker import MakerAdapter
from forkooor.adapters.positions.morpho_blue import MorphoBlueAdapter
from forkooor.adapters.positions.spark import SparkAdapter
from forkooor.errors import LookupNotFoundError

ADAPTER_REGISTRY = {
    ("aave", "v3"): AaveV3Adapter,
    ("spark", ""): SparkAdapter,
    ("compound", "v3"): CompoundV3Adapter,
    ("morpho-blue", ""): MorphoBlueAdapter,
    ("liquity", "v1"): LiquityAdapter,
    ("liquity", "v2"): LiquityV2Adapter,
    ("curveusd", ""): CurveUsdAdapter,
    ("maker", ""): MakerAdapter,
    ("fluid", ""): FluidAdapter,
}


def get_adapter(protocol: str, version: str, session):
    """Position adapter for (protocol, version) bound to ``session``; routers dispatch through this."""
    try:
        cls = ADAPTER_REGISTRY[(protocol, version)]
    except KeyError:
        raise LookupNotFoundError(f"No position adapter for {protocol} {version}".strip())
    return cls(session)
