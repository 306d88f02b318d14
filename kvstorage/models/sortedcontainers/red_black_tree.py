"""
Red-Black Tree implementation of the ordered key index.

Keys are Python strings. Code point order of str equals the byte order of
their UTF-8 encoding, so the tree is byte-lexicographic without encoding.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from kvstorage.interfaces.sorted_container import SortedContainer
from kvstorage.models.exceptions import InternalError


class Color(IntEnum):
    """Node color for Red-Black Tree."""

    RED = 0
    BLACK = 1


@dataclass(eq=False)
class Node:
    """Node in the Red-Black Tree. Compared by identity."""

    key: str
    value: Any
    color: Color = Color.RED
    left: "Node | None" = None
    right: "Node | None" = None
    parent: "Node | None" = None


def _color(node: Node | None) -> Color:
    # Missing children are black leaves
    return Color.BLACK if node is None else node.color


def _estimate_size(key: str, value: Any) -> int:
    if hasattr(value, "size_bytes"):
        return value.size_bytes()
    estimated = len(key.encode("utf-8")) + 64
    if isinstance(value, (bytes, bytearray)):
        estimated += len(value)
    elif isinstance(value, str):
        estimated += len(value.encode("utf-8"))
    return estimated


class RedBlackTree(SortedContainer):
    """
    Red-Black Tree implementation of SortedContainer.

    Properties maintained:
    1. Every node is either red or black
    2. Root is always black
    3. Red nodes cannot have red children
    4. Every path from root to leaf has same number of black nodes

    Not thread-safe on its own; callers serialize writers against readers.
    """

    def __init__(self) -> None:
        self._root: Node | None = None
        self._size: int = 0
        self._size_bytes: int = 0

    def put(self, key: str, value: Any) -> bool:
        """Insert or replace a key-value pair. O(log N)"""
        parent = None
        current = self._root

        while current is not None:
            parent = current
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                self._size_bytes += _estimate_size(key, value)
                self._size_bytes -= _estimate_size(key, current.value)
                current.value = value
                return False

        node = Node(key=key, value=value, parent=parent)
        if parent is None:
            self._root = node
        elif key < parent.key:
            parent.left = node
        else:
            parent.right = node

        self._size += 1
        self._size_bytes += _estimate_size(key, value)
        self._fix_insert(node)
        return True

    def get(self, key: str) -> Any | None:
        """Retrieve value by key. O(log N)"""
        node = self._find_node(key)
        return node.value if node else None

    def delete(self, key: str) -> bool:
        """Remove a key-value pair. O(log N)"""
        node = self._find_node(key)
        if node is None:
            return False

        self._size_bytes -= _estimate_size(node.key, node.value)
        self._delete_node(node)
        self._size -= 1
        return True

    def has(self, key: str) -> bool:
        return self._find_node(key) is not None

    def size(self) -> int:
        return self._size

    def size_bytes(self) -> int:
        return self._size_bytes

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return self.iterator()

    def iterator(
        self, start: str | None = None, end: str | None = None
    ) -> Iterator[tuple[str, Any]]:
        return _RangeIterator(self._root, start, end)

    def prefix_iterator(self, prefix: str) -> Iterator[tuple[str, Any]]:
        if not prefix:
            return _RangeIterator(self._root, None, None)
        return _RangeIterator(self._root, prefix, None, prefix=prefix)

    def check_invariants(self) -> None:
        """Walk the whole tree and raise InternalError on the first violation. O(N)"""
        if self._root is None:
            if self._size != 0:
                raise InternalError(f"empty tree reports size {self._size}")
            return

        if self._root.parent is not None:
            raise InternalError("root has a parent link")
        if self._root.color != Color.BLACK:
            raise InternalError("root is red")

        count = 0
        previous: str | None = None
        for key, _ in self:
            if previous is not None and not previous < key:
                raise InternalError(f"keys out of order: {previous!r} before {key!r}")
            previous = key
            count += 1

        if count != self._size:
            raise InternalError(f"tree holds {count} nodes but reports size {self._size}")

        self._black_height(self._root)

    def _black_height(self, node: Node | None) -> int:
        if node is None:
            return 1

        for child in (node.left, node.right):
            if child is None:
                continue
            if child.parent is not node:
                raise InternalError(f"broken parent link below {node.key!r}")
            if node.color == Color.RED and child.color == Color.RED:
                raise InternalError(f"red node {node.key!r} has a red child")

        left_height = self._black_height(node.left)
        right_height = self._black_height(node.right)
        if left_height != right_height:
            raise InternalError(f"unequal black height at {node.key!r}")

        return left_height + (1 if node.color == Color.BLACK else 0)

    def _find_node(self, key: str) -> Node | None:
        """Find node by key."""
        current = self._root
        while current is not None:
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                return current
        return None

    def _fix_insert(self, node: Node) -> None:
        """Restore Red-Black properties after inserting a red node."""
        while node.parent is not None and node.parent.color == Color.RED:
            parent = node.parent
            # A red parent is never the root, so the grandparent exists
            grandparent = parent.parent

            if parent is grandparent.left:
                uncle = grandparent.right
                if _color(uncle) == Color.RED:
                    parent.color = Color.BLACK
                    uncle.color = Color.BLACK
                    grandparent.color = Color.RED
                    node = grandparent
                    continue

                if node is parent.right:
                    node = parent
                    self._rotate_left(node)
                    parent = node.parent

                parent.color = Color.BLACK
                grandparent.color = Color.RED
                self._rotate_right(grandparent)
            else:
                uncle = grandparent.left
                if _color(uncle) == Color.RED:
                    parent.color = Color.BLACK
                    uncle.color = Color.BLACK
                    grandparent.color = Color.RED
                    node = grandparent
                    continue

                if node is parent.left:
                    node = parent
                    self._rotate_right(node)
                    parent = node.parent

                parent.color = Color.BLACK
                grandparent.color = Color.RED
                self._rotate_left(grandparent)

        self._root.color = Color.BLACK

    def _rotate_left(self, node: Node) -> None:
        """Left rotation."""
        right_child = node.right
        if right_child is None:
            return

        node.right = right_child.left
        if right_child.left:
            right_child.left.parent = node

        right_child.parent = node.parent

        if node.parent is None:
            self._root = right_child
        elif node is node.parent.left:
            node.parent.left = right_child
        else:
            node.parent.right = right_child

        right_child.left = node
        node.parent = right_child

    def _rotate_right(self, node: Node) -> None:
        """Right rotation."""
        left_child = node.left
        if left_child is None:
            return

        node.left = left_child.right
        if left_child.right:
            left_child.right.parent = node

        left_child.parent = node.parent

        if node.parent is None:
            self._root = left_child
        elif node is node.parent.right:
            node.parent.right = left_child
        else:
            node.parent.left = left_child

        left_child.right = node
        node.parent = left_child

    def _transplant(self, node: Node, child: Node | None) -> None:
        """Put child in node's place under node's parent."""
        if node.parent is None:
            self._root = child
        elif node is node.parent.left:
            node.parent.left = child
        else:
            node.parent.right = child

        if child is not None:
            child.parent = node.parent

    def _delete_node(self, node: Node) -> None:
        """
        Unlink node from the tree.

        A node with two children is replaced by relinking its in-order
        successor, not by copying the successor's key into it, so Node
        identity always matches its key.
        """
        removed_color = node.color

        if node.left is None:
            child = node.right
            child_parent = node.parent
            self._transplant(node, node.right)
        elif node.right is None:
            child = node.left
            child_parent = node.parent
            self._transplant(node, node.left)
        else:
            successor = node.right
            while successor.left is not None:
                successor = successor.left

            removed_color = successor.color
            child = successor.right

            if successor.parent is node:
                child_parent = successor
            else:
                child_parent = successor.parent
                self._transplant(successor, successor.right)
                successor.right = node.right
                successor.right.parent = successor

            self._transplant(node, successor)
            successor.left = node.left
            successor.left.parent = successor
            successor.color = node.color

        node.left = node.right = node.parent = None

        if removed_color == Color.BLACK:
            self._fix_delete(child, child_parent)

    def _fix_delete(self, node: Node | None, parent: Node | None) -> None:
        """
        Restore Red-Black properties after removing a black node.

        node carries the extra black and may be None (an empty leaf), which is
        why its parent is tracked separately.
        """
        while node is not self._root and _color(node) == Color.BLACK:
            if node is parent.left:
                sibling = parent.right

                if _color(sibling) == Color.RED:
                    sibling.color = Color.BLACK
                    parent.color = Color.RED
                    self._rotate_left(parent)
                    sibling = parent.right

                if _color(sibling.left) == Color.BLACK and _color(sibling.right) == Color.BLACK:
                    sibling.color = Color.RED
                    node = parent
                    parent = node.parent
                    continue

                if _color(sibling.right) == Color.BLACK:
                    sibling.left.color = Color.BLACK
                    sibling.color = Color.RED
                    self._rotate_right(sibling)
                    sibling = parent.right

                sibling.color = parent.color
                parent.color = Color.BLACK
                sibling.right.color = Color.BLACK
                self._rotate_left(parent)
                node = self._root
                parent = None
            else:
                sibling = parent.left

                if _color(sibling) == Color.RED:
                    sibling.color = Color.BLACK
                    parent.color = Color.RED
                    self._rotate_right(parent)
                    sibling = parent.left

                if _color(sibling.left) == Color.BLACK and _color(sibling.right) == Color.BLACK:
                    sibling.color = Color.RED
                    node = parent
                    parent = node.parent
                    continue

                if _color(sibling.left) == Color.BLACK:
                    sibling.right.color = Color.BLACK
                    sibling.color = Color.RED
                    self._rotate_left(sibling)
                    sibling = parent.left

                sibling.color = parent.color
                parent.color = Color.BLACK
                sibling.left.color = Color.BLACK
                self._rotate_right(parent)
                node = self._root
                parent = None

        if node is not None:
            node.color = Color.BLACK


class _RangeIterator(Iterator[tuple[str, Any]]):
    """In-order iterator bounded by [start, end) and, optionally, a key prefix."""

    def __init__(
        self,
        root: Node | None,
        start: str | None,
        end: str | None,
        prefix: str | None = None,
    ) -> None:
        self._stack: list[Node] = []
        self._end = end
        self._prefix = prefix

        # Initialize stack with nodes >= start
        self._push_left_path(root, start)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return self

    def __next__(self) -> tuple[str, Any]:
        if not self._stack:
            raise StopIteration

        node = self._stack.pop()

        if self._past_bound(node.key):
            self._stack.clear()
            raise StopIteration

        result = (node.key, node.value)

        # Push right subtree's left path
        self._push_left_path(node.right, None)

        return result

    def _past_bound(self, key: str) -> bool:
        if self._end is not None and key >= self._end:
            return True
        # Matching keys are contiguous, the first miss ends the run
        return self._prefix is not None and not key.startswith(self._prefix)

    def _push_left_path(self, node: Node | None, start: str | None) -> None:
        """Push leftmost path to stack, respecting start bound."""
        while node:
            if start is not None and node.key < start:
                # Skip nodes less than start
                node = node.right
            else:
                self._stack.append(node)
                node = node.left
