"""
Declaration tree for logmetrics.

Every construct is created with an explicit parent scope and an id that is unique
among its siblings. The tree is built in memory and later turned into templates by
`logmetrics.core.synth`. There is no implicit registry: the only way a node
becomes part of a tree is by being passed its parent.
"""

import logging
from typing import Dict
from typing import Iterator
from typing import List
from typing import Optional

from logmetrics.errors import ConstructIdConflictError
from logmetrics.errors import ValidationError

logger = logging.getLogger(__name__)

PATH_SEP = "/"


class Construct:
    """
    A node in the declaration tree.

    :type scope: Construct
    :param scope: The parent node. Only an `App` may be created without one.
    :type id: str
    :param id: Identifier unique within `scope`. May not contain '/'.
    """

    def __init__(self, scope: Optional["Construct"], id: str) -> None:
        if scope is not None:
            _validate_id(id)
        self.scope = scope
        self.id = id
        self._children: Dict[str, "Construct"] = {}
        self._dependencies: List["Construct"] = []
        if scope is not None:
            scope._add_child(self)

    def _add_child(self, child: "Construct") -> None:
        if child.id in self._children:
            raise ConstructIdConflictError(
                f"There is already a construct with id '{child.id}' in '{self.path or '<root>'}'",
            )
        self._children[child.id] = child
        logger.debug("Registered %r under %r", child, self)

    @property
    def children(self) -> List["Construct"]:
        """Direct children, in the order they were added."""
        return list(self._children.values())

    def try_find_child(self, id: str) -> Optional["Construct"]:
        return self._children.get(id)

    @property
    def scopes(self) -> List["Construct"]:
        """All nodes from the root down to and including this one."""
        chain: List[Construct] = []
        node: Optional[Construct] = self
        while node is not None:
            chain.append(node)
            node = node.scope
        return list(reversed(chain))

    @property
    def path(self) -> str:
        return PATH_SEP.join(node.id for node in self.scopes if node.scope is not None)

    @property
    def root(self) -> "Construct":
        return self.scopes[0]

    def find_all(self) -> Iterator["Construct"]:
        """Pre-order walk of this node and all of its descendants."""
        yield self
        for child in self._children.values():
            yield from child.find_all()

    @property
    def stack(self) -> "Stack":
        """The closest enclosing Stack."""
        for node in reversed(self.scopes):
            if isinstance(node, Stack):
                return node
        raise ValidationError(
            f"'{self.path}' is not defined within a Stack",
        )

    def add_dependency(self, *targets: "Construct") -> None:
        """Resources under this node will be declared as depending on `targets`."""
        for target in targets:
            if target is self:
                continue
            if target not in self._dependencies:
                self._dependencies.append(target)

    @property
    def dependencies(self) -> List["Construct"]:
        return list(self._dependencies)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path or '<root>'!r})"


class App(Construct):
    """Root of a declaration tree. Holds one or more stacks."""

    def __init__(self) -> None:
        super().__init__(None, "")

    @property
    def stacks(self) -> List["Stack"]:
        return [node for node in self.find_all() if isinstance(node, Stack)]


class Stack(Construct):
    """
    A unit of deployment. Each stack synthesizes into one template.

    `account` and `region` are optional; when set they are inherited by metrics
    attached to constructs in this stack.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        account: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        super().__init__(scope, id)
        self.account = account
        self.region = region

    @property
    def stack_name(self) -> str:
        return self.id


class Resource(Construct):
    """Base class for higher-level constructs that wrap generated resources."""

    @property
    def env(self) -> Dict[str, Optional[str]]:
        stack = self.stack
        return {"account": stack.account, "region": stack.region}


def _validate_id(id: str) -> None:
    if not isinstance(id, str) or not id:
        raise ConstructIdConflictError("Construct id must be a non-empty string")
    if PATH_SEP in id:
        raise ConstructIdConflictError(
            f"Construct id '{id}' may not contain '{PATH_SEP}'",
        )
