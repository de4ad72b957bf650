from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional

from governance.constants import SOURCES_PARAMS_FILEPATH
from governance.errors import ConfigurationError
from governance.identifiers import LABEL_SEPARATOR
from governance.utils import _load_yaml


class SourceConfig(NamedTuple):
    """A data source accepted by the token, as passed to ``configureSource``."""

    name: str
    requires_proof: bool
    requires_attestation: bool

    @classmethod
    def from_config(cls, config: Dict) -> "SourceConfig":
        if not isinstance(config, dict):
            raise ConfigurationError(f"Source entry must be a mapping, got {config!r}")
        name = config.get("name")
        if not isinstance(name, str) or not name.strip() or name != name.strip():
            raise ConfigurationError(f"Invalid source name {name!r}")
        if LABEL_SEPARATOR in name:
            raise ConfigurationError(f"Source name '{name}' contains '{LABEL_SEPARATOR}'")
        flags = dict()
        for flag in ("requires_proof", "requires_attestation"):
            value = config.get(flag, False)
            if not isinstance(value, bool):
                raise ConfigurationError(f"'{flag}' of source '{name}' must be true or false")
            flags[flag] = value
        return cls(name=name, **flags)


def load_sources(
    filepath: Path = SOURCES_PARAMS_FILEPATH, only: Optional[Iterable[str]] = None
) -> List[SourceConfig]:
    """
    Loads the source list from a YAML params file, optionally restricted to
    the names in `only` (case-insensitive).
    """
    config = _load_yaml(filepath) or dict()
    entries = config.get("sources")
    if not isinstance(entries, list) or not entries:
        raise ConfigurationError(f"No 'sources' list in {filepath}")

    sources = [SourceConfig.from_config(entry) for entry in entries]
    seen = set()
    for source in sources:
        key = source.name.lower()
        if key in seen:
            # the label lower-cases the name; both entries would share a salt
            raise ConfigurationError(f"Source '{source.name}' is listed more than once")
        seen.add(key)

    if only is None:
        return sources
    wanted = {name.lower() for name in only}
    unknown = wanted - seen
    if unknown:
        raise ConfigurationError(
            f"Unknown source(s) {', '.join(sorted(unknown))}; not listed in {filepath}"
        )
    return [source for source in sources if source.name.lower() in wanted]
