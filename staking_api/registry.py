"""
Static Registry for the Staking API

Loads the protocol sources polled by the refresh orchestrator and the token
bundle served by GET /token from YAML files. Both are read once at process
start; changing them needs a restart, not a code change.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .api.error_handling import RegistryError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_PROTOCOLS_PATH = DATA_DIR / "protocols.yml"
DEFAULT_TOKENS_PATH = DATA_DIR / "tokens.yml"

REQUIRED_PROTOCOL_FIELDS = ("nameProject", "nameToken", "token", "staking", "chain")


@dataclass(frozen=True)
class ProtocolSource:
    """One staking contract to poll"""

    name_project: str
    name_token: str
    token: str
    staking: str
    chain: str
    rpc: str = ""

    @classmethod
    def from_config(cls, data: Dict[str, Any], environ=None) -> 'ProtocolSource':
        """
        Build a ProtocolSource from one registry entry

        The RPC URL is the literal `rpc` value when present, otherwise the
        value of the environment variable named by `rpcEnv` (empty if unset).
        """
        environ = os.environ if environ is None else environ

        if not isinstance(data, dict):
            raise RegistryError(f"Protocol entry {data!r} must be a mapping", source="protocols")

        missing = [f for f in REQUIRED_PROTOCOL_FIELDS if not data.get(f)]
        if missing:
            raise RegistryError(
                f"Protocol entry {data!r} is missing fields: {', '.join(missing)}",
                source="protocols",
            )

        rpc = data.get("rpc")
        if rpc is None and data.get("rpcEnv"):
            rpc = environ.get(data["rpcEnv"], "")

        return cls(
            name_project=str(data["nameProject"]),
            name_token=str(data["nameToken"]),
            token=str(data["token"]),
            staking=str(data["staking"]),
            chain=str(data["chain"]),
            rpc=(rpc or "").strip(),
        )


def _read_yaml(path: Path, source: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError as e:
        logger.error(f"FATAL: {source} registry file not found at {path}")
        raise RegistryError(f"{source} registry file not found at {path}", source=source) from e
    except yaml.YAMLError as e:
        logger.error(f"FATAL: Failed to parse {source} registry {path}: {e}")
        raise RegistryError(f"Failed to parse {source} registry {path}: {e}", source=source) from e

    if not isinstance(content, dict):
        raise RegistryError(f"{source} registry {path} must be a mapping", source=source)
    return content


def load_protocol_sources(path: Optional[str] = None, environ=None) -> List[ProtocolSource]:
    """Load the protocol registry (packaged file unless `path` is given)"""
    registry_path = Path(path) if path else DEFAULT_PROTOCOLS_PATH
    content = _read_yaml(registry_path, "protocols")

    entries = content.get("protocols")
    if not isinstance(entries, list):
        raise RegistryError(f"{registry_path} must define a 'protocols' list", source="protocols")

    sources = [ProtocolSource.from_config(entry, environ) for entry in entries]

    for source in sources:
        if not source.rpc:
            logger.warning(f"No RPC URL configured for {source.name_project} on {source.chain}")
    logger.info(f"Loaded {len(sources)} protocol sources from {registry_path}")
    return sources


def load_token_bundle(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the static token bundle (`{"tokens": [...]}`)"""
    registry_path = Path(path) if path else DEFAULT_TOKENS_PATH
    content = _read_yaml(registry_path, "tokens")

    if not isinstance(content.get("tokens"), list):
        raise RegistryError(f"{registry_path} must define a 'tokens' list", source="tokens")

    logger.info(f"Loaded {len(content['tokens'])} token descriptors from {registry_path}")
    return content
