import hashlib
import logging
import re
from dataclasses import fields
from dataclasses import is_dataclass
from enum import Enum
from typing import Any
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Mapping

from logmetrics.core.construct import Construct
from logmetrics.core.construct import Stack
from logmetrics.errors import ConstructIdConflictError

logger = logging.getLogger(__name__)

# Path components that add nothing to the readable part of a logical id.
HIDDEN_ID_COMPONENTS = ("Resource", "Default")
HASH_LEN = 8
MAX_LOGICAL_ID_LEN = 255

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")


class CfnResource(Construct):
    """
    A resource declared as-is in the synthesized template.

    Subclasses set `resource_type` and pass a frozen properties dataclass.
    """

    resource_type: ClassVar[str] = ""

    def __init__(self, scope: Construct, id: str, *, properties: Any) -> None:
        super().__init__(scope, id)
        self.properties = properties

    @property
    def logical_id(self) -> str:
        stack = self.stack
        components = [node.id for node in self.scopes[self.scopes.index(stack) + 1:]]
        return make_logical_id(components)

    def render(self) -> Dict[str, Any]:
        return {
            "Type": self.resource_type,
            "Properties": render_properties(self.properties),
        }


def make_logical_id(components: List[str]) -> str:
    """
    Build a template-unique logical id from the path of a resource under its stack.

    A lone top-level component is used as is (minus non-alphanumerics). Deeper paths
    get a readable prefix plus a hash of the full path so that two paths which read the
    same still produce different ids.
    """
    if not components:
        raise ValueError("Unable to calculate a logical id for an empty path")

    if len(components) == 1:
        logical_id = _NON_ALPHANUMERIC.sub("", components[0])[:MAX_LOGICAL_ID_LEN]
        if not logical_id:
            raise ConstructIdConflictError(
                f"Unable to derive a logical id from '{components[0]}': it has no alphanumeric characters",
            )
        return logical_id

    path_hash = hashlib.md5("/".join(components).encode("utf-8")).hexdigest()
    path_hash = path_hash[:HASH_LEN].upper()

    human: List[str] = []
    for component in components:
        if component in HIDDEN_ID_COMPONENTS:
            continue
        # Foo/Foo/Bar reads as FooBar
        if human and human[-1] == component:
            continue
        human.append(component)
    readable = _NON_ALPHANUMERIC.sub("", "".join(human))
    return readable[: MAX_LOGICAL_ID_LEN - HASH_LEN] + path_hash


def to_cfn_key(name: str) -> str:
    """log_group_name -> LogGroupName"""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def render_properties(value: Any) -> Any:
    """
    Render a properties value into template JSON.

    Dataclass fields become PascalCase keys. Fields set to None are left out entirely,
    which is how optional properties are expressed as absent.
    """
    if is_dataclass(value) and not isinstance(value, type):
        rendered: Dict[str, Any] = {}
        for f in fields(value):
            field_value = getattr(value, f.name)
            if field_value is None:
                continue
            rendered[f.metadata.get("cfn_key", to_cfn_key(f.name))] = render_properties(field_value)
        return rendered
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [render_properties(v) for v in value]
    if isinstance(value, Mapping):
        return {k: render_properties(v) for k, v in value.items()}
    return value


def find_resources(scope: Construct) -> List[CfnResource]:
    return [node for node in scope.find_all() if isinstance(node, CfnResource)]


def resources_in_stack(stack: Stack) -> List[CfnResource]:
    """CfnResources owned by `stack`, excluding those of nested stacks."""
    return [r for r in find_resources(stack) if r.stack is stack]
