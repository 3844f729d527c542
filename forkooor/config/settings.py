"""
Process settings, read from the environment (and an optional .env file).

    TENDERLY_ACCESS_KEY    default access key for the Tenderly management API
    TENDERLY_ACCOUNT       Tenderly account slug (default: defisaver-v2)
    TENDERLY_PROJECT       Tenderly project slug (default: strategies)
    FORKOOOR_RPC_TIMEOUT   web3 HTTP timeout in seconds (default: 60)
    FORKOOOR_LOG_LEVEL     logging level name (default: INFO)
    FORKOOOR_HOST          bind address of the HTTP server (default: 0.0.0.0)
    FORKOOOR_PORT          port of the HTTP server (default: 3000)
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    tenderly_access_key: Optional[str]
    tenderly_account: str
    tenderly_project: str
    rpc_timeout: int
    log_level: str
    host: str
    port: int

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            tenderly_access_key=os.getenv("TENDERLY_ACCESS_KEY"),
            tenderly_account=os.getenv("TENDERLY_ACCOUNT", "defisaver-v2"),
            tenderly_project=os.getenv("TENDERLY_PROJECT", "strategies"),
            rpc_timeout=int(os.getenv("FORKOOOR_RPC_TIMEOUT", "60")),
            log_level=os.getenv("FORKOOOR_LOG_LEVEL", "INFO").upper(),
            host=os.getenv("FORKOOOR_HOST", "0.0.0.0"),
            port=int(os.getenv("FORKOOOR_PORT", "3000")),
        )


settings = Settings.from_env()
