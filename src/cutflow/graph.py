"""Typed filter graph — nodes and labeled edges, rendered for ffmpeg.

The compiler builds a FilterGraph instead of concatenating strings, so
its structure (which nodes exist, what feeds what) can be inspected in
tests. render() produces the -filter_complex text only at the process
boundary.

A node is one filter chain: input labels, a list of filters applied in
sequence, output labels. Labels are either input-file streams ("0:v",
"2:a") or intermediate pads produced by an earlier node ("v0", "outv").
"""

import re
from dataclasses import dataclass, field

from .errors import CompilationError


_INPUT_STREAM = re.compile(r"^\d+:[va]$")


def escape_value(value: str) -> str:
    """Escape a filter option value (file paths, free text)."""
    return (
        value.replace("\\", "\\\\")
        .replace(":", "\\:")
        .replace("'", "\\'")
    )


@dataclass(frozen=True)
class Filter:
    """One filter: name plus ordered arguments.

    args are rendered verbatim, joined with ':' — positional values
    ("1920") or key=value pairs ("force_original_aspect_ratio=decrease").
    """
    name: str
    args: tuple[str, ...] = ()

    def render(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}={':'.join(self.args)}"

    def arg(self, key: str) -> str | None:
        """Value of a key=value argument, or None."""
        prefix = f"{key}="
        for a in self.args:
            if a.startswith(prefix):
                return a[len(prefix):]
        return None


def make_filter(name: str, *positional, **options) -> Filter:
    """Build a Filter from positional values then keyword options."""
    args = [str(p) for p in positional]
    args.extend(f"{k}={v}" for k, v in options.items())
    return Filter(name, tuple(args))


@dataclass
class FilterNode:
    """A filter chain with its input and output labels.

    kind tags the node's role for inspection: normalize, concat, text,
    effect, audio, mix.
    """
    kind: str
    inputs: list[str]
    filters: list[Filter]
    outputs: list[str]

    def render(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        chain = ",".join(f.render() for f in self.filters)
        return f"{ins}{chain}{outs}"

    def filter_names(self) -> list[str]:
        return [f.name for f in self.filters]


@dataclass
class FilterGraph:
    """Ordered DAG of FilterNodes.

    add() enforces the ffmpeg labeling rules up front:
      - every output label is unique and not an input-file stream,
      - every input is an input-file stream or an earlier node's output,
      - an intermediate output is consumed by at most one node.
    """
    nodes: list[FilterNode] = field(default_factory=list)

    def add(self, node: FilterNode) -> FilterNode:
        produced = self._produced()
        consumed = self._consumed()

        if not node.filters:
            raise CompilationError(f"{node.kind} node has no filters")

        for label in node.inputs:
            if _INPUT_STREAM.match(label):
                continue
            if label not in produced:
                raise CompilationError(
                    f"{node.kind} node reads [{label}] before any node produces it"
                )
            if label in consumed:
                raise CompilationError(f"Label [{label}] consumed twice")

        for label in node.outputs:
            if _INPUT_STREAM.match(label):
                raise CompilationError(f"Output label [{label}] collides with an input stream")
            if label in produced or node.outputs.count(label) > 1:
                raise CompilationError(f"Duplicate output label [{label}]")

        self.nodes.append(node)
        return node

    def nodes_of_kind(self, kind: str) -> list[FilterNode]:
        return [n for n in self.nodes if n.kind == kind]

    def unconsumed_outputs(self) -> list[str]:
        """Output labels no node reads — the streams left for -map."""
        consumed = self._consumed()
        return [
            label
            for n in self.nodes
            for label in n.outputs
            if label not in consumed
        ]

    def render(self) -> str:
        return ";".join(n.render() for n in self.nodes)

    def _produced(self) -> set[str]:
        return {label for n in self.nodes for label in n.outputs}

    def _consumed(self) -> set[str]:
        return {
            label
            for n in self.nodes
            for label in n.inputs
            if not _INPUT_STREAM.match(label)
        }
