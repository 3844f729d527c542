"""forkooor - DeFi position tooling for Tenderly forks and virtual testnets."""

__version__ = "0.4.0"
