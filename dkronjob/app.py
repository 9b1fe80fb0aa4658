import argparse
import json
from pathlib import Path
from typing import Any, Dict, List

from . import __version__
from .config import ProviderConfig
from .env import load_env
from .logger import get_logger
from .provider import RESOURCES, get_resource_type
from .schema import normalize, validate_job_strict
from .state import (
    ResourceData,
    diff_dict,
    get_resource,
    load_state,
    remove_resource,
    save_state,
    update_resource,
)

DEFAULT_CONFIG = "dkron.json"
DEFAULT_STATE = "dkron.tfstate.json"


def load_config(path: Path) -> Dict[str, Dict[str, Any]]:
    """Read {"dkron_job": {"<label>": {...}}} into {"dkron_job.<label>": {...}}."""
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError("Configuration must be a JSON object keyed by resource type")
    resources: Dict[str, Dict[str, Any]] = {}
    for rtype, blocks in raw.items():
        if rtype not in RESOURCES:
            raise ValueError(f"Unsupported resource type: {rtype}")
        if not isinstance(blocks, dict):
            raise ValueError(f"'{rtype}' must map labels to resource blocks")
        for label, attrs in blocks.items():
            if not isinstance(attrs, dict):
                raise ValueError(f"'{rtype}.{label}' must be a JSON object")
            resources[f"{rtype}.{label}"] = attrs
    return resources


def plan(config: Dict[str, Dict[str, Any]], state: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Blocks that fail validation come back as "invalid" actions with their errors."""
    actions = []
    for address, attrs in config.items():
        valid, errors = validate_job_strict(attrs)
        if not valid:
            actions.append({"address": address, "action": "invalid", "changes": {}, "errors": errors})
            continue
        entry = get_resource(state, address)
        new = normalize(attrs)
        if entry is None:
            actions.append({"address": address, "action": "create", "changes": diff_dict({}, new)})
            continue
        changes = diff_dict(entry["attributes"], new)
        action = "update" if changes else "no-op"
        actions.append({"address": address, "action": action, "changes": changes})
    for address, entry in state.get("resources", {}).items():
        if address not in config:
            actions.append({
                "address": address,
                "action": "delete",
                "changes": diff_dict(entry["attributes"], {}),
            })
    return actions


def apply_resource(address: str, attributes: Dict[str, Any], state: Dict[str, Any], meta: ProviderConfig) -> Dict[str, Any]:
    """Create or update one resource. State is only written on success."""
    resource = get_resource_type(address)
    valid, errors = validate_job_strict(attributes)
    if not valid:
        return {"address": address, "status": "validation_error", "errors": errors}

    entry = get_resource(state, address)
    if entry is None:
        d = ResourceData(config=attributes)
        diags = resource.create(d, meta)
    else:
        d = ResourceData(prior=entry["attributes"], config=attributes, id=entry["id"])
        if not diff_dict(entry["attributes"], d.attributes()):
            return {"address": address, "status": "no-change", "id": entry["id"]}
        diags = resource.update(d, meta)

    if diags.has_error():
        if entry is not None and not d.id:
            # Rename deleted the old job before the create failed.
            remove_resource(state, address)
            get_logger().warning("Old job deleted but replacement failed", address=address)
        return {"address": address, "status": "error", "errors": [str(x) for x in diags]}

    result = update_resource(state, address, d.id, d.attributes())
    return {"address": address, "id": d.id, **result}


def destroy_resource(address: str, state: Dict[str, Any], meta: ProviderConfig) -> Dict[str, Any]:
    entry = get_resource(state, address)
    if entry is None:
        return {"address": address, "status": "absent"}
    resource = get_resource_type(address)
    d = ResourceData(prior=entry["attributes"], id=entry["id"])
    diags = resource.delete(d, meta)
    if diags.has_error():
        return {"address": address, "status": "error", "errors": [str(x) for x in diags]}
    remove_resource(state, address)
    return {"address": address, "status": "deleted"}


def refresh_resource(address: str, state: Dict[str, Any], meta: ProviderConfig) -> Dict[str, Any]:
    entry = get_resource(state, address)
    if entry is None:
        return {"address": address, "status": "absent"}
    resource = get_resource_type(address)
    d = ResourceData(prior=entry["attributes"], id=entry["id"])
    diags = resource.read(d, meta)
    if diags.has_error():
        return {"address": address, "status": "error", "errors": [str(x) for x in diags]}
    result = update_resource(state, address, d.id, d.attributes())
    return {"address": address, "id": d.id, **result}


def import_resource(address: str, job_name: str, state: Dict[str, Any], meta: ProviderConfig) -> Dict[str, Any]:
    """Adopt an existing job into state under address."""
    resource = get_resource_type(address)
    if get_resource(state, address) is not None:
        return {"address": address, "status": "exists"}
    d = ResourceData(id=job_name)
    diags = resource.read(d, meta)
    if diags.has_error():
        return {"address": address, "status": "error", "errors": [str(x) for x in diags]}
    result = update_resource(state, address, d.id, d.attributes())
    return {"address": address, "id": d.id, **result}


def _print_outcome(outcome: Dict[str, Any]) -> bool:
    """Print one resource outcome; return False when it failed."""
    status = outcome["status"]
    print(f"[{status}] {outcome['address']}")
    if status in ("error", "validation_error"):
        for e in outcome.get("errors", []):
            print(f" - {e}")
        return False
    return True


def _read_config(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    config_path = Path(args.config)
    if not config_path.exists():
        raise SystemExit(f"Config file not found: {config_path}")
    try:
        return load_config(config_path)
    except (ValueError, json.JSONDecodeError) as e:
        raise SystemExit(f"Invalid config {config_path}: {e}")


def _meta(args: argparse.Namespace) -> ProviderConfig:
    try:
        return ProviderConfig.from_env(host=args.host)
    except ValueError as e:
        raise SystemExit(str(e))


def cmd_validate(args: argparse.Namespace) -> None:
    config = _read_config(args)
    failed = False
    for address, attrs in config.items():
        valid, errors = validate_job_strict(attrs)
        if valid:
            print(f"[valid] {address}")
            continue
        failed = True
        print(f"[invalid] {address}")
        for e in errors:
            print(f" - {e}")
    if failed:
        raise SystemExit(2)


def cmd_plan(args: argparse.Namespace) -> None:
    config = _read_config(args)
    state = load_state(Path(args.state))
    pending = 0
    invalid = False
    for action in plan(config, state):
        if action["action"] == "no-op":
            continue
        if action["action"] == "invalid":
            invalid = True
            _print_outcome({"address": action["address"], "status": "validation_error", "errors": action["errors"]})
            continue
        pending += 1
        print(f"{action['action']}: {action['address']}")
        for key, change in action["changes"].items():
            print(f"  {key}: {json.dumps(change['old'])} -> {json.dumps(change['new'])}")
    if not pending and not invalid:
        print("No changes.")
    if invalid:
        raise SystemExit(2)


def cmd_apply(args: argparse.Namespace) -> None:
    config = _read_config(args)
    state_path = Path(args.state)
    state = load_state(state_path)
    meta = _meta(args)
    ok = True
    for action in plan(config, state):
        address = action["address"]
        if action["action"] == "no-op":
            continue
        if action["action"] == "invalid":
            outcome = {"address": address, "status": "validation_error", "errors": action["errors"]}
        elif action["action"] == "delete":
            outcome = destroy_resource(address, state, meta)
        else:
            outcome = apply_resource(address, config[address], state, meta)
        ok = _print_outcome(outcome) and ok
        save_state(state_path, state)
    get_logger().log_metrics_summary()
    if not ok:
        raise SystemExit(1)


def cmd_refresh(args: argparse.Namespace) -> None:
    state_path = Path(args.state)
    state = load_state(state_path)
    meta = _meta(args)
    ok = True
    for address in list(state["resources"]):
        ok = _print_outcome(refresh_resource(address, state, meta)) and ok
    save_state(state_path, state)
    get_logger().log_metrics_summary()
    if not ok:
        raise SystemExit(1)


def cmd_import(args: argparse.Namespace) -> None:
    state_path = Path(args.state)
    state = load_state(state_path)
    try:
        outcome = import_resource(args.address, args.job_name, state, _meta(args))
    except ValueError as e:
        raise SystemExit(str(e))
    if outcome["status"] == "exists":
        raise SystemExit(f"{args.address} is already managed; destroy or rename it first.")
    if not _print_outcome(outcome):
        raise SystemExit(1)
    save_state(state_path, state)


def cmd_destroy(args: argparse.Namespace) -> None:
    state_path = Path(args.state)
    state = load_state(state_path)
    meta = _meta(args)
    targets = args.target or list(state["resources"])
    ok = True
    for address in targets:
        ok = _print_outcome(destroy_resource(address, state, meta)) and ok
        save_state(state_path, state)
    get_logger().log_metrics_summary()
    if not ok:
        raise SystemExit(1)


def cmd_list(args: argparse.Namespace) -> None:
    state_path = Path(args.state)
    if not state_path.exists():
        print(f"State not found: {state_path}")
        return
    resources = load_state(state_path)["resources"]
    if not resources:
        print("No resources in state.")
        return
    print(f"Found {len(resources)} resources in {state_path}:\n")
    for address, entry in resources.items():
        attrs = entry.get("attributes", {})
        print(f"{address}")
        print(f"  ID: {entry.get('id')}")
        print(f"  Schedule: {attrs.get('schedule')}")
        print(f"  Executor: {attrs.get('executor')}")
        print(f"  Disabled: {attrs.get('disabled')}")
        print()


def main(argv=None):
    load_env()
    parser = argparse.ArgumentParser(prog="dkronjob", description="Manage Dkron jobs declaratively")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help=f"Path to job config JSON (default: {DEFAULT_CONFIG})")
    parser.add_argument("--state", default=DEFAULT_STATE, help=f"Path to state file (default: {DEFAULT_STATE})")
    parser.add_argument("--host", help="Dkron API base URL (or set DKRON_HOST)")

    subparsers = parser.add_subparsers(dest="command")
    val = subparsers.add_parser("validate", help="Validate the config against the resource schema")
    val.set_defaults(func=cmd_validate)

    pln = subparsers.add_parser("plan", help="Show what apply would change")
    pln.set_defaults(func=cmd_plan)

    app = subparsers.add_parser("apply", help="Create, update and delete jobs to match the config")
    app.set_defaults(func=cmd_apply)

    ref = subparsers.add_parser("refresh", help="Re-read every managed job into state")
    ref.set_defaults(func=cmd_refresh)

    imp = subparsers.add_parser("import", help="Adopt an existing Dkron job into state")
    imp.add_argument("address", help="Resource address, e.g. dkron_job.backup")
    imp.add_argument("job_name", help="Name of the job on the Dkron server")
    imp.set_defaults(func=cmd_import)

    dst = subparsers.add_parser("destroy", help="Delete managed jobs")
    dst.add_argument("--target", action="append", help="Only destroy this address (repeatable)")
    dst.set_defaults(func=cmd_destroy)

    lst = subparsers.add_parser("list", help="List managed jobs")
    lst.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
