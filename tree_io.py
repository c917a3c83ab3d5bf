"""Reading and writing behavior tree files (JSON)."""

import json
import logging
from typing import Iterable, List, Mapping

from errors import TreeFileError
from tree import TreeNode

log = logging.getLogger(__name__)


def load_trees(path) -> List[dict]:
    """Read a tree file.

    The file holds either one tree object or an array of top-level subtrees; the
    result is always a list of wire mappings. Node contents are validated later,
    when the trees are materialized.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise TreeFileError(f"Cannot read {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise TreeFileError(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, Mapping):
        trees = [data]
    elif isinstance(data, list):
        trees = data
    else:
        raise TreeFileError(f"{path} must contain a tree object or a list of trees")

    for tree in trees:
        if not isinstance(tree, Mapping):
            raise TreeFileError(f"{path} contains a tree that is not an object: {tree!r}")
    log.info("Loaded %d tree(s) from %s", len(trees), path)
    return trees


def dump_trees(path, trees: Iterable) -> None:
    """Write trees (TreeNode or wire mappings) as a JSON array"""
    data = [tree.to_dict() if isinstance(tree, TreeNode) else dict(tree) for tree in trees]
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise TreeFileError(f"Cannot write {path}: {e.strerror or e}") from e
    log.info("Saved %d tree(s) to %s", len(data), path)
