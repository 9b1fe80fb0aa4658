from typing import Any, Dict, List, Tuple

EXECUTOR_TYPES = ["gcppubsub", "grpc", "http", "kafka", "nats", "rabbitmq", "shell"]
PROCESSOR_TYPES = ["files", "log", "syslog"]

PROCESSOR_SCHEMA: Dict[str, Dict[str, Any]] = {
    "type": {"type": "string", "required": True, "choices": PROCESSOR_TYPES},
    "forward": {"type": "string"},
    "log_dir": {"type": "string"},
}

JOB_SCHEMA: Dict[str, Dict[str, Any]] = {
    "name": {"type": "string", "required": True},
    "timezone": {"type": "string"},
    "displayname": {"type": "string"},
    "schedule": {"type": "string", "required": True},
    "owner": {"type": "string"},
    "owner_email": {"type": "string"},
    "disabled": {"type": "bool"},
    "tags": {"type": "map"},
    "retries": {"type": "int"},
    "parent_job": {"type": "string"},
    "concurrency": {"type": "string"},
    "executor": {"type": "string", "required": True, "choices": EXECUTOR_TYPES},
    "executor_config": {"type": "map"},
    "metadata": {"type": "map"},
    "processors": {"type": "list", "elem": PROCESSOR_SCHEMA},
}

_ZERO = {"string": "", "bool": False, "int": 0}


def zero_value(field: Dict[str, Any]) -> Any:
    """Value an unset attribute reads as."""
    if field["type"] == "map":
        return {}
    if field["type"] == "list":
        return []
    return _ZERO[field["type"]]


def normalize(data: Dict[str, Any], schema: Dict[str, Dict[str, Any]] = JOB_SCHEMA) -> Dict[str, Any]:
    """
    Return a copy of data holding exactly the schema's keys.
    Missing or None values become zero values; nested blocks are
    normalized against their own schema.
    """
    out: Dict[str, Any] = {}
    for key, field in schema.items():
        value = data.get(key) if data else None
        if value is None:
            out[key] = zero_value(field)
        elif field["type"] == "map":
            out[key] = dict(value)
        elif field["type"] == "list":
            out[key] = [normalize(item, field["elem"]) for item in value]
        else:
            out[key] = value
    return out


def _check_field(path: str, field: Dict[str, Any], value: Any, errors: List[str]) -> None:
    ftype = field["type"]
    if ftype == "string":
        if not isinstance(value, str):
            errors.append(f"Field '{path}' must be a string")
            return
        if field.get("required") and value.strip() == "":
            errors.append(f"Field '{path}' must be a non-empty string")
        elif "choices" in field and value not in field["choices"]:
            allowed = ", ".join(field["choices"])
            errors.append(f"Field '{path}' must be one of: {allowed} (got {value!r})")
    elif ftype == "bool":
        if not isinstance(value, bool):
            errors.append(f"Field '{path}' must be a boolean")
    elif ftype == "int":
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"Field '{path}' must be an integer")
    elif ftype == "map":
        if not isinstance(value, dict):
            errors.append(f"Field '{path}' must be a mapping of strings")
            return
        for k, v in value.items():
            if not isinstance(v, str):
                errors.append(f"Field '{path}.{k}' must be a string")
    elif ftype == "list":
        if not isinstance(value, list):
            errors.append(f"Field '{path}' must be a list")
            return
        for i, item in enumerate(value):
            if not isinstance(item, dict):
                errors.append(f"Field '{path}[{i}]' must be a block")
                continue
            errors.extend(_validate_block(item, field["elem"], prefix=f"{path}[{i}]."))


def _validate_block(data: Dict[str, Any], schema: Dict[str, Dict[str, Any]], prefix: str = "") -> List[str]:
    errors: List[str] = []
    for key, field in schema.items():
        path = f"{prefix}{key}"
        if key not in data or data[key] is None:
            if field.get("required"):
                errors.append(f"Missing required field: {path}")
            continue
        _check_field(path, field, data[key], errors)
    return errors


def _unknown_keys(data: Dict[str, Any], schema: Dict[str, Dict[str, Any]], prefix: str = "") -> List[str]:
    errors = [
        f"Unsupported attribute: {prefix}{key}"
        for key in data
        if key not in schema
    ]
    for key, field in schema.items():
        if field["type"] == "list" and isinstance(data.get(key), list):
            for i, item in enumerate(data[key]):
                if isinstance(item, dict):
                    errors.extend(_unknown_keys(item, field["elem"], prefix=f"{prefix}{key}[{i}]."))
    return errors


def validate_job(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Unknown attributes are not reported here; see validate_job_strict.
    """
    if not isinstance(data, dict):
        return ["Job configuration must be a mapping"]
    return _validate_block(data, JOB_SCHEMA)


def validate_job_strict(data: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Like validate_job, but unknown attributes are errors too."""
    errors = validate_job(data)
    if isinstance(data, dict):
        errors.extend(_unknown_keys(data, JOB_SCHEMA))
    return (not errors, errors)
