from typing import Dict

from .resource import Resource, resource_dkron_job

RESOURCES: Dict[str, Resource] = {
    "dkron_job": resource_dkron_job(),
}


def get_resource_type(address: str) -> Resource:
    """Look up the resource for an address like 'dkron_job.backup'."""
    rtype = address.split(".", 1)[0]
    if rtype not in RESOURCES:
        raise ValueError(f"Unsupported resource type: {rtype}")
    return RESOURCES[rtype]
