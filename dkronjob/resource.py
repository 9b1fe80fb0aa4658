"""
The dkron_job resource: CRUD between ResourceData and the Dkron API.

Every operation builds its own client from the provider config, sends a
single request and reports failure as Diagnostics. Local state (id and
attributes) only changes after the request succeeded.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict

from .client import DkronError
from .config import ProviderConfig
from .diag import Diagnostics, from_err
from .job import Job, convert_map, expand_processors, flatten_processors
from .logger import get_logger
from .schema import JOB_SCHEMA
from .state import ResourceData

CrudFunc = Callable[[ResourceData, ProviderConfig], Diagnostics]


@dataclass
class Resource:
    schema: Dict[str, Dict[str, Any]]
    create: CrudFunc
    read: CrudFunc
    update: CrudFunc
    delete: CrudFunc


def resource_dkron_job() -> Resource:
    return Resource(
        schema=JOB_SCHEMA,
        create=resource_dkron_job_create,
        read=resource_dkron_job_read,
        update=resource_dkron_job_update,
        delete=resource_dkron_job_delete,
    )


def build_job(d: ResourceData) -> Job:
    return Job(
        name=d.get("name"),
        timezone=d.get("timezone"),
        displayname=d.get("displayname"),
        schedule=d.get("schedule"),
        owner=d.get("owner"),
        owner_email=d.get("owner_email"),
        disabled=d.get("disabled"),
        tags=convert_map(d.get("tags")),
        retries=d.get("retries"),
        parent_job=d.get("parent_job"),
        concurrency=d.get("concurrency"),
        executor=d.get("executor"),
        executor_config=convert_map(d.get("executor_config")),
        metadata=convert_map(d.get("metadata")),
        processors=expand_processors(d.get("processors")),
        ephemeral=False,
    )


def resource_dkron_job_create(d: ResourceData, meta: ProviderConfig) -> Diagnostics:
    logger = get_logger()
    try:
        body = build_job(d)
        meta.new_client().create_or_update_job(body.to_dict())
    except (DkronError, TypeError) as e:
        return from_err(e)

    d.set_id(body.name)
    logger.info("Job saved", job=body.name)
    return Diagnostics()


def resource_dkron_job_read(d: ResourceData, meta: ProviderConfig) -> Diagnostics:
    try:
        data = meta.new_client().show_job_by_name(d.id)
        job = Job.from_dict(data)
    except (DkronError, TypeError) as e:
        return from_err(e)

    d.set("name", job.name)
    d.set("timezone", job.timezone)
    d.set("displayname", job.displayname)
    d.set("schedule", job.schedule)
    d.set("owner", job.owner)
    d.set("owner_email", job.owner_email)
    d.set("disabled", job.disabled)
    d.set("tags", job.tags)
    d.set("retries", job.retries)
    d.set("parent_job", job.parent_job)
    d.set("concurrency", job.concurrency)
    d.set("executor", job.executor)
    d.set("executor_config", job.executor_config)
    d.set("metadata", job.metadata)
    d.set("processors", flatten_processors(job.processors))
    return Diagnostics()


def resource_dkron_job_update(d: ResourceData, meta: ProviderConfig) -> Diagnostics:
    old, new = d.get_change("name")
    if old != new:
        # Dkron keys jobs by name, so a rename is delete + create.
        get_logger().info("Job renamed, replacing", old=old, new=new)
        diags = resource_dkron_job_delete(d, meta)
        if diags.has_error():
            return diags
    return resource_dkron_job_create(d, meta)


def resource_dkron_job_delete(d: ResourceData, meta: ProviderConfig) -> Diagnostics:
    try:
        meta.new_client().delete_job(d.id)
    except DkronError as e:
        return from_err(e)

    get_logger().info("Job deleted", job=d.id)
    d.set_id("")
    return Diagnostics()
