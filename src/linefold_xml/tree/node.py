"""Tree node for line-folded XML documents.

A node carries a tag name, an attribute map and exactly one kind of content:
``Leaf`` text or a ``Parent`` map of children. Children are grouped by tag
name; order is kept inside a group but not between groups, so
``<a/><b/><a/>`` is stored as ``{"a": [a1, a2], "b": [b1]}``.

A child is filed under the tag it had when it was added. Renaming an attached
child does not move it: it stays in its old group until it is removed and
added again.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from linefold_xml.shared.errors import (
    DuplicateAttributeError,
    MissingAttributeError,
    PreconditionViolationError,
)

ChildMap = Dict[str, List["Node"]]


@dataclass(frozen=True)
class Leaf:
    """Text content of a node without children."""

    text: str = ""


@dataclass(frozen=True)
class Parent:
    """Children of a node, grouped by tag name."""

    children: ChildMap


Content = Union[Leaf, Parent]


class Node:
    """A single element of the document tree."""

    def __init__(
        self,
        tag: str = "",
        attributes: Optional[Mapping[str, str]] = None,
        text: str = ""
    ) -> None:
        self._tag = tag
        self._attributes: Dict[str, str] = {}
        self._content: Content = Leaf(text)
        self._borrowed = False

        for key, value in (attributes or {}).items():
            self.add_attribute(key, value)

    def __repr__(self) -> str:
        if isinstance(self._content, Parent):
            body = f"children={sum(len(g) for g in self._content.children.values())}"
        else:
            body = f"text={self._content.text!r}"
        return f"Node(tag={self._tag!r}, attributes={len(self._attributes)}, {body})"

    # Tag name

    @property
    def tag(self) -> str:
        return self._tag

    @tag.setter
    def tag(self, name: str) -> None:
        self.set_tag(name)

    def set_tag(self, name: str) -> None:
        """Rename this node.

        A parent does not regroup its children, so an attached node keeps its
        place in the group for its old tag name. Remove it and add it again to
        file it under the new name.

        Raises:
            TypeError: If ``name`` is not a string.
        """
        if not isinstance(name, str):
            raise TypeError("Tag name must be a string")
        self._tag = name

    def get_tag_name(self) -> str:
        return self._tag

    # Attributes

    @property
    def attributes(self) -> Mapping[str, str]:
        """Read-only view of the attribute map."""
        return MappingProxyType(self._attributes)

    def add_attribute(self, key: str, value: str) -> None:
        """Add a new attribute.

        Raises:
            DuplicateAttributeError: If ``key`` is already present; the
                attribute map is left unchanged.
        """
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("Attribute name and value must be strings")
        if key in self._attributes:
            raise DuplicateAttributeError(key, self._tag)
        self._attributes[key] = value

    def get_attribute_value(self, key: str) -> str:
        """Return the value of ``key``.

        Raises:
            MissingAttributeError: If the attribute is absent.
        """
        try:
            return self._attributes[key]
        except KeyError:
            raise MissingAttributeError(key, self._tag) from None

    def has_attribute(self, key: str) -> bool:
        return key in self._attributes

    def remove_attribute(self, key: str) -> str:
        """Remove ``key`` and return its value."""
        try:
            return self._attributes.pop(key)
        except KeyError:
            raise MissingAttributeError(key, self._tag) from None

    def number_of_attributes(self) -> int:
        return len(self._attributes)

    # Text

    @property
    def text(self) -> str:
        return self.get_text()

    @text.setter
    def text(self, value: str) -> None:
        self.set_text(value)

    def set_text(self, value: str) -> None:
        """Make this node a leaf holding ``value``.

        Raises:
            PreconditionViolationError: If the node has children; the node is
                left unchanged.
        """
        if not isinstance(value, str):
            raise TypeError("Text must be a string")
        self._check_not_borrowed()
        if self.has_children():
            raise PreconditionViolationError(
                f"Cannot set text on <{self._tag}>: node has children"
            )
        self._content = Leaf(value)

    def get_text(self) -> str:
        """Leaf text, or an empty string for parent nodes."""
        if isinstance(self._content, Leaf):
            return self._content.text
        return ""

    # Children

    def has_children(self) -> bool:
        if isinstance(self._content, Parent):
            return any(self._content.children.values())
        return False

    def swap_children(self, new_children: ChildMap) -> ChildMap:
        """Exchange the whole children map and return the previous one.

        Ownership of ``new_children`` passes to this node and ownership of
        the returned map passes to the caller; neither is shared afterwards.

        Raises:
            PreconditionViolationError: If the children are currently lent
                out by :meth:`edit_children`, or if ``new_children`` holds
                children while this node holds text.
        """
        self._check_not_borrowed()
        self._validate_child_map(new_children)

        if isinstance(self._content, Parent):
            previous = self._content.children
        else:
            previous = {}

        has_new_children = any(new_children.values())
        if isinstance(self._content, Leaf):
            if has_new_children and self._content.text:
                raise PreconditionViolationError(
                    f"Cannot attach children to <{self._tag}>: node holds text"
                )
            if has_new_children:
                self._content = Parent(new_children)
        else:
            self._content = Parent(new_children)

        return previous

    @contextmanager
    def edit_children(self) -> Iterator[ChildMap]:
        """Lend the children map to the caller for the duration of a block.

        The map is moved out of the node on entry and moved back on exit,
        even if the block raises. While it is lent, changing this node's
        content raises ``PreconditionViolationError``.

        Example:
            >>> with node.edit_children() as children:
            ...     children.setdefault("item", []).append(Node("item"))
        """
        children = self.swap_children({})
        self._borrowed = True
        try:
            yield children
        finally:
            self._borrowed = False
            self.swap_children(children)

    def add_child(self, child: "Node") -> None:
        """Append ``child`` to the group for its tag name."""
        if not isinstance(child, Node):
            raise TypeError("Child must be a Node instance")
        if child is self:
            raise PreconditionViolationError("A node cannot be its own child")
        self._check_not_borrowed()

        if isinstance(self._content, Leaf):
            if self._content.text:
                raise PreconditionViolationError(
                    f"Cannot add a child to <{self._tag}>: node holds text"
                )
            self._content = Parent({})

        self._content.children.setdefault(child.tag, []).append(child)

    def remove_child(self, child: "Node") -> bool:
        """Remove ``child`` if it is a direct child of this node."""
        self._check_not_borrowed()
        if not isinstance(self._content, Parent):
            return False

        for tag, group in self._content.children.items():
            for index, candidate in enumerate(group):
                if candidate is child:
                    del group[index]
                    if not group:
                        del self._content.children[tag]
                    if not self._content.children:
                        self._content = Leaf()
                    return True
        return False

    def get_children(self, tag: str) -> List["Node"]:
        """Children in the ``tag`` group, in order (a copy)."""
        self._check_not_borrowed()
        if isinstance(self._content, Parent):
            return list(self._content.children.get(tag, []))
        return []

    def child_tags(self) -> List[str]:
        """Tag names of the non-empty child groups, in map order."""
        self._check_not_borrowed()
        if isinstance(self._content, Parent):
            return [tag for tag, group in self._content.children.items() if group]
        return []

    def iter_children(self) -> Iterator["Node"]:
        """Yield every child, group by group."""
        self._check_not_borrowed()
        if isinstance(self._content, Parent):
            for group in list(self._content.children.values()):
                yield from list(group)

    def find(self, tag: str) -> Optional["Node"]:
        """Find the first descendant with a matching tag name."""
        for child in self.iter_children():
            if child.tag == tag:
                return child
            found = child.find(tag)
            if found is not None:
                return found
        return None

    def find_all(self, tag: str) -> List["Node"]:
        """Find all descendants with a matching tag name."""
        results = []
        for child in self.iter_children():
            if child.tag == tag:
                results.append(child)
            results.extend(child.find_all(tag))
        return results

    def to_dict(self) -> Dict[str, Any]:
        """Convert node to dictionary representation."""
        result: Dict[str, Any] = {
            "tag": self._tag,
            "attributes": dict(self._attributes),
        }
        if self.has_children():
            result["children"] = {
                tag: [child.to_dict() for child in group]
                for tag, group in self._content.children.items()
                if group
            }
        else:
            result["text"] = self.get_text()
        return result

    def _check_not_borrowed(self) -> None:
        if self._borrowed:
            raise PreconditionViolationError(
                f"Children of <{self._tag}> are currently lent out"
            )

    @staticmethod
    def _validate_child_map(children: ChildMap) -> None:
        if not isinstance(children, dict):
            raise TypeError("Children must be a dict of tag name to list of nodes")
        for tag, group in children.items():
            if not isinstance(tag, str) or not isinstance(group, list):
                raise TypeError("Children must be a dict of tag name to list of nodes")
            for child in group:
                if not isinstance(child, Node):
                    raise TypeError("Child must be a Node instance")
