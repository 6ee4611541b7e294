"""Tests for the typed filter graph."""

import pytest

from cutflow.errors import CompilationError
from cutflow.graph import (
    Filter,
    FilterGraph,
    FilterNode,
    escape_value,
    make_filter,
)


def _node(kind, inputs, outputs, name="null"):
    return FilterNode(kind, inputs, [Filter(name)], outputs)


class TestFilter:
    def test_render_without_args(self):
        assert Filter("null").render() == "null"

    def test_make_filter_positional_then_options(self):
        f = make_filter("scale", 640, 360, force_original_aspect_ratio="decrease")
        assert f.render() == "scale=640:360:force_original_aspect_ratio=decrease"

    def test_arg_lookup(self):
        f = make_filter("concat", n=3, v=1, a=0)
        assert f.arg("n") == "3"
        assert f.arg("missing") is None

    def test_escape_value(self):
        assert escape_value("C:\\tmp\\it's.txt") == "C\\:\\\\tmp\\\\it\\'s.txt"


class TestFilterNode:
    def test_render(self):
        node = FilterNode(
            "normalize", ["0:v"],
            [make_filter("fps", 30), make_filter("setpts", "PTS-STARTPTS")],
            ["v0"],
        )
        assert node.render() == "[0:v]fps=30,setpts=PTS-STARTPTS[v0]"
        assert node.filter_names() == ["fps", "setpts"]


class TestFilterGraph:
    def test_render_joins_nodes(self):
        g = FilterGraph()
        g.add(_node("normalize", ["0:v"], ["v0"]))
        g.add(_node("normalize", ["1:v"], ["v1"]))
        g.add(FilterNode("concat", ["v0", "v1"], [make_filter("concat", n=2, v=1, a=0)], ["outv"]))
        assert g.render() == (
            "[0:v]null[v0];[1:v]null[v1];[v0][v1]concat=n=2:v=1:a=0[outv]"
        )
        assert g.unconsumed_outputs() == ["outv"]
        assert len(g.nodes_of_kind("normalize")) == 2

    def test_unknown_input_label_raises(self):
        g = FilterGraph()
        with pytest.raises(CompilationError, match="before any node produces"):
            g.add(_node("text", ["v9"], ["txt0"]))

    def test_label_consumed_twice_raises(self):
        g = FilterGraph()
        g.add(_node("normalize", ["0:v"], ["v0"]))
        g.add(_node("text", ["v0"], ["txt0"]))
        with pytest.raises(CompilationError, match="consumed twice"):
            g.add(_node("text", ["v0"], ["txt1"]))

    def test_input_streams_may_be_reused(self):
        g = FilterGraph()
        g.add(_node("normalize", ["0:v"], ["v0"]))
        g.add(_node("normalize", ["0:v"], ["v1"]))
        assert g.unconsumed_outputs() == ["v0", "v1"]

    def test_duplicate_output_raises(self):
        g = FilterGraph()
        g.add(_node("normalize", ["0:v"], ["v0"]))
        with pytest.raises(CompilationError, match="Duplicate output"):
            g.add(_node("normalize", ["1:v"], ["v0"]))

    def test_output_colliding_with_input_stream_raises(self):
        g = FilterGraph()
        with pytest.raises(CompilationError, match="collides"):
            g.add(_node("normalize", ["0:v"], ["1:v"]))

    def test_node_without_filters_raises(self):
        g = FilterGraph()
        with pytest.raises(CompilationError, match="no filters"):
            g.add(FilterNode("normalize", ["0:v"], [], ["v0"]))
