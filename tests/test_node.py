from dataclasses import dataclass

from plugintree.node import PluginTreeNode


@dataclass(frozen=True)
class FakePlugin:
    name: str

    def __str__(self):
        return self.name


def node(name: str) -> PluginTreeNode:
    return PluginTreeNode(FakePlugin(name), name)


def test_adding_a_dependent_twice_keeps_a_single_entry():
    parent, child = node("parent"), node("child")

    parent.add_dependent(child)
    parent.add_dependent(child)

    assert parent.dependents == (child,)


def test_nodes_with_equal_plugins_are_distinct():
    parent = node("parent")
    first, second = node("child"), node("child")

    parent.add_dependent(first)
    parent.add_dependent(second)

    assert parent.dependents == (first, second)


def test_dependents_view_cannot_mutate_node():
    parent = node("parent")
    dependents = parent.dependents

    assert isinstance(dependents, tuple)
    parent.add_dependent(node("child"))
    assert dependents == ()


def test_all_dependents_is_depth_first():
    a, b, c, d, e = (node(name) for name in "abcde")
    a.add_dependent(b)
    a.add_dependent(d)
    b.add_dependent(c)
    d.add_dependent(e)

    assert [n.plugin_id for n in a.all_dependents()] == ["b", "c", "d", "e"]


def test_all_dependents_yields_shared_dependent_once():
    a, b, c, d = (node(name) for name in "abcd")
    a.add_dependent(b)
    a.add_dependent(c)
    b.add_dependent(d)
    c.add_dependent(d)

    assert [n.plugin_id for n in a.all_dependents()] == ["b", "d", "c"]


def test_leaf_has_no_dependents():
    assert list(node("leaf").all_dependents()) == []


def test_plugin_id_defaults_to_plugin_name():
    assert PluginTreeNode(FakePlugin("core")).plugin_id == "core"


def test_repr_lists_direct_dependents():
    a, b = node("a"), node("b")
    a.add_dependent(b)

    assert repr(a) == "a => (b)"
