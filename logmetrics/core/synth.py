import json
import logging
import os
from typing import Any
from typing import Dict
from typing import List

from logmetrics.core.cfn import CfnResource
from logmetrics.core.cfn import find_resources
from logmetrics.core.cfn import resources_in_stack
from logmetrics.core.construct import App
from logmetrics.core.construct import Stack
from logmetrics.errors import ConstructIdConflictError
from logmetrics.util import timeit

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".template.json"


def _depends_on(resource: CfnResource, stack: Stack) -> List[str]:
    # A dependency declared on any enclosing construct applies to the resource too.
    targets = []
    for node in resource.scopes:
        targets.extend(node.dependencies)

    logical_ids = set()
    for target in targets:
        for dep in find_resources(target):
            if dep is resource:
                continue
            if dep.stack is not stack:
                logger.debug(
                    "Ignoring cross-stack dependency from %s on %s",
                    resource.path,
                    dep.path,
                )
                continue
            logical_ids.add(dep.logical_id)
    return sorted(logical_ids)


@timeit
def synthesize_stack(stack: Stack) -> Dict[str, Any]:
    """
    Render every resource of `stack` into a template dict.

    :rtype: dict
    :return: {"Resources": {logical_id: {"Type": ..., "Properties": ..., "DependsOn": [...]}}}
    """
    resources: Dict[str, Any] = {}
    for resource in resources_in_stack(stack):
        logical_id = resource.logical_id
        if logical_id in resources:
            raise ConstructIdConflictError(
                f"Logical id '{logical_id}' of '{resource.path}' is used by another resource in stack '{stack.stack_name}'",
            )
        rendered = resource.render()
        depends_on = _depends_on(resource, stack)
        if depends_on:
            rendered["DependsOn"] = depends_on
        resources[logical_id] = rendered

    logger.info(
        "Synthesized %d resources for stack '%s'.", len(resources), stack.stack_name
    )
    return {"Resources": resources}


def synthesize(app: App) -> Dict[str, Dict[str, Any]]:
    """Synthesize every stack of `app`, keyed by stack name."""
    return {stack.stack_name: synthesize_stack(stack) for stack in app.stacks}


@timeit
def write_templates(app: App, outdir: str) -> List[str]:
    """
    Write one `<stack name>.template.json` per stack into `outdir`.

    :rtype: list
    :return: The paths written, in stack order.
    """
    os.makedirs(outdir, exist_ok=True)
    paths = []
    for stack_name, template in synthesize(app).items():
        path = os.path.join(outdir, f"{stack_name}{TEMPLATE_SUFFIX}")
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(template, fh, indent=2)
            fh.write("\n")
        logger.info("Wrote template for stack '%s' to %s", stack_name, path)
        paths.append(path)
    return paths
