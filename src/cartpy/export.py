"""
cartpy.export
=============

Human-readable renderings of a finalized :class:`~cartpy.learner.CartTree`:
decision rules, rule tracing for single observations, an indented text dump
and Graphviz export.  Tree walks use explicit stacks so deep trees do not hit
the interpreter's recursion limit.

Every function takes a ``describe_leaf`` callable mapping a
:class:`~cartpy.learner.LeafNode` to the text shown for it; the estimators
supply one suited to their leaf payloads.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from .learner import CartTree, InternalNode, LeafNode

LeafDescriber = Callable[[LeafNode], str]


def _feature_name(feature_index: int, feature_names=None) -> str:
    if feature_names is not None and 0 <= feature_index < len(feature_names):
        return str(feature_names[feature_index])
    return f"X[{feature_index}]"


def export_rules(tree: CartTree, describe_leaf: LeafDescriber,
                 feature_names: Optional[List[str]] = None) -> List[str]:
    """One ``"<antecedent> => <leaf description>"`` string per leaf, left to right."""
    rules: List[str] = []
    stack = [(tree.root, [])]
    while stack:
        node, parts = stack.pop()
        if isinstance(node, LeafNode):
            antecedent = " AND ".join(parts) if parts else "<root>"
            rules.append(f"{antecedent} => {describe_leaf(node)}")
            continue
        name = _feature_name(node.feature_index, feature_names)
        stack.append((node.right, parts + [f"{name} > {node.threshold:.6g}"]))
        stack.append((node.left, parts + [f"{name} <= {node.threshold:.6g}"]))
    return rules


def trace_rule(tree: CartTree, observation,
               feature_names: Optional[List[str]] = None) -> str:
    """Antecedent of the path a single observation follows."""
    parts = []
    node = tree.root
    while isinstance(node, InternalNode):
        name = _feature_name(node.feature_index, feature_names)
        if float(observation[node.feature_index]) <= node.threshold:
            parts.append(f"{name} <= {node.threshold:.6g}")
            node = node.left
        else:
            parts.append(f"{name} > {node.threshold:.6g}")
            node = node.right
    return " AND ".join(parts) if parts else "<root>"


def format_tree(tree: CartTree, describe_leaf: LeafDescriber,
                feature_names: Optional[List[str]] = None) -> str:
    """Indented ``if``/``else`` listing of the tree."""
    lines: List[str] = []
    # entries are either nodes to expand or literal lines to emit
    stack: list = [(tree.root, "")]
    while stack:
        item, indent = stack.pop()
        if isinstance(item, str):
            lines.append(indent + item)
            continue
        if isinstance(item, LeafNode):
            lines.append(f"{indent}Predict {describe_leaf(item)} (N={item.weight:.2f})")
            continue
        name = _feature_name(item.feature_index, feature_names)
        lines.append(f"{indent}if {name} <= {item.threshold:.6g}:")
        stack.append((item.right, indent + "  "))
        stack.append(("else:", indent))
        stack.append((item.left, indent + "  "))
    return "\n".join(lines)


def export_graphviz(tree: CartTree, describe_leaf: LeafDescriber, filename: str | None = None,
                    *, feature_names: Optional[List[str]] = None, format: str = "png") -> str:
    """
    Export the tree structure in Graphviz format.

    Parameters
    ----------
    tree : CartTree
        The tree to render.
    describe_leaf : callable
        Maps a leaf to its label.
    filename : str or None, default=None
        Basename of the output file (the extension is determined by
        ``format``).  If None, the DOT source is returned and nothing is
        written.
    feature_names : list[str], optional
        Names for the input features.
    format : str, default="png"
        Graphviz output format.  ``'dot'`` writes the DOT source directly and
        does not call the external ``dot`` command.

    Returns
    -------
    str
        Path to the written file, or the DOT source if ``filename`` is None.

    Raises
    ------
    RuntimeError
        If the ``graphviz`` package is not installed.
    """
    try:
        import graphviz
    except ImportError as exc:
        raise RuntimeError("Graphviz is required for export_graphviz but not installed.") from exc

    dot = graphviz.Digraph(format=format)
    stack = [(tree.root, "0")]
    while stack:
        node, name = stack.pop()
        if isinstance(node, LeafNode):
            dot.node(name, f"{describe_leaf(node)}\nN={node.weight:.2f}",
                     shape="box", style="filled", color="lightgrey")
            continue
        label = f"{_feature_name(node.feature_index, feature_names)} <= {node.threshold:.4f}"
        dot.node(name, label, shape="ellipse", style="filled", color="lightblue")
        l_id, r_id = name + "L", name + "R"
        dot.edge(name, l_id, label="True")
        dot.edge(name, r_id, label="False")
        stack.append((node.right, r_id))
        stack.append((node.left, l_id))

    if filename is None:
        return dot.source

    if format.lower() == "dot":
        path = f"{filename}.dot"
        dot.save(path)
        return path
    try:
        dot.render(filename, cleanup=True)
        return f"{filename}.{format}"
    except graphviz.ExecutableNotFound:
        # no system ``dot`` binary: fall back to the DOT source
        fallback_path = f"{filename}.dot"
        dot.save(fallback_path)
        return fallback_path
