from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .yaml_loader import load_yaml


@dataclass
class CommandCatalog:
    """Typed view over ``catalog.yaml``.

    Only the sections read by the command handlers are exposed.
    """

    descriptions: Dict[str, str]
    default_tier: Dict[str, Any]
    fallbacks: Dict[str, Any]
    faq: List[Dict[str, str]]

    def description(self, command: str) -> str:
        return self.descriptions.get(command, "Perintah tidak diketahui")

    def fallback(self, name: str) -> Dict[str, Any]:
        """Return the fallback dataset for ``name``.

        Raises ``KeyError`` when the catalog has no dataset for ``name``.
        Snapshot handlers read their dataset once through
        ``CommandHandler.check`` when the dispatcher is built.
        """

        return self.fallbacks[name]


def load_command_catalog(path: str | Path) -> CommandCatalog:
    """Load ``catalog.yaml`` and return a :class:`CommandCatalog`.

    Parameters
    ----------
    path:
        File system path to the YAML catalog.
    """

    raw = load_yaml(path)
    catalog = raw.get("catalog", {})
    return CommandCatalog(
        descriptions=dict(catalog.get("descriptions", {})),
        default_tier=dict(catalog.get("default_tier", {})),
        fallbacks=dict(catalog.get("fallbacks", {})),
        faq=list(catalog.get("faq", [])),
    )
