"""
Wire model for a Dkron job and the processor reshaping rules.

The API keys processors by type ({"log": {"forward": "true"}}) while the
resource schema holds them as a list of blocks carrying a "type" field.
"""

from dataclasses import MISSING, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from .client import DkronDecodeError

# Processor keys that are dropped from the outbound body when empty.
OMIT_WHEN_EMPTY = ("forward", "log_dir")


def convert_map(m: Optional[Mapping[Any, Any]]) -> Dict[str, str]:
    """Turn a generic mapping into dict[str, str]. Values must already be strings."""
    if m is None:
        return {}
    if not isinstance(m, Mapping):
        raise TypeError(f"Expected a mapping of strings, got {type(m).__name__}")
    res: Dict[str, str] = {}
    for k, v in m.items():
        if not isinstance(v, str):
            raise TypeError(f"Value for key {k!r} must be a string, got {type(v).__name__}")
        res[str(k)] = v
    return res


def expand_processors(blocks: Optional[List[Mapping[str, Any]]]) -> Dict[str, Dict[str, str]]:
    """Processor block list -> mapping keyed by type, without the type key."""
    processors: Dict[str, Dict[str, str]] = {}
    for block in blocks or []:
        processor = convert_map(block)
        ty = processor.pop("type", "")
        for key in OMIT_WHEN_EMPTY:
            if processor.get(key) == "":
                del processor[key]
        processors[ty] = processor
    return processors


def flatten_processors(processors: Optional[Mapping[str, Mapping[str, str]]]) -> List[Dict[str, str]]:
    """Mapping keyed by type -> processor block list, sorted by type."""
    blocks = []
    for ty in sorted(processors or {}):
        block = dict(processors[ty] or {})
        block["type"] = ty
        blocks.append(block)
    return blocks


@dataclass
class Job:
    name: str = ""
    timezone: str = ""
    schedule: str = ""
    owner: str = ""
    owner_email: str = ""
    success_count: int = 0
    error_count: int = 0
    disabled: bool = False
    tags: Dict[str, str] = field(default_factory=dict)
    retries: int = 0
    dependent_jobs: List[str] = field(default_factory=list)
    parent_job: str = ""
    concurrency: str = ""
    executor: str = ""
    executor_config: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)
    displayname: str = ""
    processors: Dict[str, Dict[str, str]] = field(default_factory=dict)
    ephemeral: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """JSON body with empty values left out."""
        body = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value in ("", 0, False, None) or value == {} or value == []:
                continue
            body[f.name] = value
        return body

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Job":
        """Decode an API job. Wrong-typed fields raise DkronDecodeError."""
        kwargs = {}
        for f in fields(cls):
            value = data.get(f.name)
            if value is None:
                continue
            if not _has_type(value, _field_type(f)):
                raise DkronDecodeError(
                    f"Field {f.name!r} has type {type(value).__name__}, expected {_field_type(f).__name__}"
                )
            kwargs[f.name] = value
        job = cls(**kwargs)
        try:
            job.tags = convert_map(job.tags)
            job.executor_config = convert_map(job.executor_config)
            job.metadata = convert_map(job.metadata)
            job.processors = {ty: convert_map(p) for ty, p in job.processors.items()}
        except TypeError as e:
            raise DkronDecodeError(f"Invalid job from Dkron: {e}") from e
        if not all(isinstance(name, str) for name in job.dependent_jobs):
            raise DkronDecodeError("Field 'dependent_jobs' must be a list of strings")
        return job


def _field_type(f) -> type:
    if f.default_factory is not MISSING:
        return type(f.default_factory())
    return type(f.default)


def _has_type(value: Any, expected: type) -> bool:
    # bool is an int subclass; keep the two apart
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)
