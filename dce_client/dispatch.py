# =============================================================================
# DCE Python Client -- Dispatch Tree
# =============================================================================
#
# Namespace tree built once from the server manifest.  Interior nodes are
# plain dicts keyed by path segment; leaves are ActionLeaf callables bound
# to an ActionDescriptor.  Resolution is a pure walk over this structure.
# =============================================================================

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Sequence, Union

from .errors import DCEActionNotImplemented, DCEClientError, DCEServerError
from .types import ActionDescriptor, ActionKind, Manifest

Invoke = Callable[[str, ActionKind, Any], Awaitable[Any]]
Node = Union["ActionLeaf", dict[str, Any]]


def extract_payload(args: Sequence[Any]) -> Any:
    """First argument that is structured data (mapping or list), else ``{}``."""
    for arg in args:
        if isinstance(arg, (Mapping, list)) and not callable(arg):
            return arg
    return {}


def split_path(path: str | Sequence[str]) -> list[str]:
    if isinstance(path, str):
        return path.split(".")
    if not all(isinstance(segment, str) for segment in path):
        raise DCEClientError(f"invalid action path {path!r}")
    return list(path)


class ActionLeaf:
    """Callable bound to one manifest action.

    Calling it with any arguments extracts the payload and forwards
    ``(name, kind, payload)`` to the correlation engine.
    """

    __slots__ = ("descriptor", "_invoke")

    def __init__(self, descriptor: ActionDescriptor, invoke: Invoke) -> None:
        self.descriptor = descriptor
        self._invoke = invoke

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def kind(self) -> ActionKind:
        return self.descriptor.kind

    def __call__(self, *args: Any) -> Awaitable[Any]:
        return self._invoke(self.descriptor.name, self.descriptor.kind, extract_payload(args))

    def __repr__(self) -> str:
        return f"<ActionLeaf {self.descriptor}>"


class DispatchTree:
    """Dotted action names mapped to :class:`ActionLeaf` callables."""

    def __init__(self) -> None:
        self._root: dict[str, Node] = {}
        self._descriptors: list[ActionDescriptor] = []
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def root(self) -> Mapping[str, Node]:
        return self._root

    def actions(self) -> list[ActionDescriptor]:
        return list(self._descriptors)

    def build(self, manifest: Manifest, invoke: Invoke) -> None:
        """Install every action of *manifest*.

        The tree is assembled off to the side and swapped in only when every
        descriptor fits, so a bad manifest leaves the tree untouched.

        Raises:
            DCEServerError: Two actions collide (same name, or one name is a
                namespace prefix of another).
        """
        root: dict[str, Node] = {}
        for descriptor in manifest.actions:
            *parents, last = descriptor.segments
            node = root
            for depth, segment in enumerate(parents):
                child = node.setdefault(segment, {})
                if isinstance(child, ActionLeaf):
                    prefix = ".".join(parents[: depth + 1])
                    raise DCEServerError(
                        f"action {descriptor.name} collides with action {prefix}",
                        descriptor.name,
                    )
                node = child
            if last in node:
                raise DCEServerError(
                    f"action {descriptor.name} declared more than once or shadows a namespace",
                    descriptor.name,
                )
            node[last] = ActionLeaf(descriptor, invoke)

        self._root = root
        self._descriptors = list(manifest.actions)
        self._built = True

    def resolve(self, path: str | Sequence[str]) -> ActionLeaf:
        """Walk *path* one segment at a time.

        A leaf is returned as soon as it is reached; remaining segments are
        ignored.

        Raises:
            DCEActionNotImplemented: A segment is missing or the path ends on
                a namespace.
        """
        segments = split_path(path)
        dotted = ".".join(segments)
        node: Node = self._root
        for segment in segments:
            if isinstance(node, ActionLeaf):
                return node
            if segment not in node:
                raise DCEActionNotImplemented(dotted)
            node = node[segment]
        if isinstance(node, ActionLeaf):
            return node
        raise DCEActionNotImplemented(dotted)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and any(d.name == name for d in self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


class ActionNamespace:
    """Read-only attribute view over a :class:`DispatchTree`.

    ``client.actions.billing.invoice.create({...})`` resolves one attribute
    per path segment.  Only meaningful once the manifest has arrived.
    """

    __slots__ = ("_tree", "_prefix")

    def __init__(self, tree: DispatchTree, prefix: tuple[str, ...] = ()) -> None:
        self._tree = tree
        self._prefix = prefix

    def _node(self) -> Node:
        node: Node = self._tree.root
        for segment in self._prefix:
            node = node[segment]
        return node

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        node = self._node()
        if not isinstance(node, dict) or name not in node:
            path = ".".join((*self._prefix, name))
            raise AttributeError(f"{path} not implemented.")
        child = node[name]
        if isinstance(child, ActionLeaf):
            return child
        return ActionNamespace(self._tree, (*self._prefix, name))

    def __dir__(self) -> list[str]:
        node = self._node()
        return sorted(node) if isinstance(node, dict) else []

    def __repr__(self) -> str:
        return f"<ActionNamespace {'.'.join(self._prefix) or '<root>'}>"
