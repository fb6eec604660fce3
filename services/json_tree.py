"""
Visitor helpers over parsed JSON trees (dict / list / str / int / float / bool / None).

Both the reference scanner and the rename rewrite go through these, so every
string leaf is reached the same way: object values and array elements, never keys.
"""
from typing import Any, Callable, Iterator


def iter_string_leaves(node: Any) -> Iterator[str]:
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            yield current
        elif isinstance(current, dict):
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)


def map_string_leaves(node: Any, fn: Callable[[str], str]) -> Any:
    """
    Return a copy of `node` with every string leaf replaced by fn(leaf).
    Numbers, booleans and nulls are returned unchanged; the input is not mutated.
    """
    if isinstance(node, str):
        return fn(node)
    if isinstance(node, dict):
        return {key: map_string_leaves(value, fn) for key, value in node.items()}
    if isinstance(node, list):
        return [map_string_leaves(item, fn) for item in node]
    return node
