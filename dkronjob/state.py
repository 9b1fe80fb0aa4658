import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .schema import JOB_SCHEMA, normalize

STATE_VERSION = 1


class ResourceData:
    """
    Per-resource view handed to CRUD functions.

    `prior` is what the state file last recorded; `config` is the planned
    configuration. With no config (read, delete, import) the working
    attributes start as a copy of the prior state.
    """

    def __init__(
        self,
        prior: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        id: str = "",
        schema: Dict[str, Dict[str, Any]] = JOB_SCHEMA,
    ):
        self.schema = schema
        self._prior = normalize(prior or {}, schema)
        source = config if config is not None else self._prior
        self._attrs = normalize(source, schema)
        self._id = id

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, id: str) -> None:
        self._id = id

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._attrs[key])

    def get_change(self, key: str) -> Tuple[Any, Any]:
        return copy.deepcopy(self._prior[key]), copy.deepcopy(self._attrs[key])

    def has_change(self, key: str) -> bool:
        old, new = self.get_change(key)
        return old != new

    def set(self, key: str, value: Any) -> None:
        if key not in self.schema:
            raise KeyError(f"Unknown attribute: {key}")
        self._attrs[key] = normalize({key: value}, {key: self.schema[key]})[key]

    def attributes(self) -> Dict[str, Any]:
        return copy.deepcopy(self._attrs)


# State file


def empty_state() -> Dict[str, Any]:
    return {"version": STATE_VERSION, "resources": {}}


def load_state(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return empty_state()
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return empty_state()
            state = json.loads(content)
    except (json.JSONDecodeError, IOError):
        return empty_state()
    state.setdefault("version", STATE_VERSION)
    state.setdefault("resources", {})
    return state


def save_state(path: Path, state: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, ensure_ascii=False, sort_keys=True)


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in sorted(keys):
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


def get_resource(state: Dict[str, Any], address: str) -> Optional[Dict[str, Any]]:
    return state.get("resources", {}).get(address)


def update_resource(state: Dict[str, Any], address: str, id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
    resources = state.setdefault("resources", {})
    entry = {"id": id, "attributes": attributes}
    current = resources.get(address)
    if current is None:
        resources[address] = entry
        return {"status": "new"}
    if current != entry:
        resources[address] = entry
        return {"status": "updated"}
    return {"status": "no-change"}


def remove_resource(state: Dict[str, Any], address: str) -> bool:
    return state.setdefault("resources", {}).pop(address, None) is not None
