import pytest

from cloudtree import Scope


def test_structurally_equal_scopes_hash_equal():
    first = Scope("pcname", ["x", "y", "z"], 0)
    second = Scope("pcname", ["x", "y", "z"], 0)

    assert first == second
    assert hash(first) == hash(second)
    assert {first: "view"}[second] == "view"


@pytest.mark.parametrize(
    "other",
    [
        Scope("pcname", ["x", "y", "z"], 1),
        Scope("PCNAME", ["x", "y", "z"], 0),
        Scope("pcname", ["X", "y", "z"], 0),
        Scope("pcname", ["x", "y"], 0),
        Scope("pcname", ["z", "y", "x"], 0),
    ],
)
def test_scopes_differ_on_any_field(other):
    base = Scope("pcname", ["x", "y", "z"], 0)

    assert base != other
    assert hash(base) != hash(other)


def test_scope_text_form():
    assert str(Scope("pcname", ["x", "y", "z"], 0)) == '<Scope "pcname" L0 x,y,z>'
    assert str(Scope("3d", ("u",), 2)) == '<Scope "3d" L2 u>'


def test_scope_normalises_coordinates():
    scope = Scope("pc", iter(["a", "b"]))

    assert scope.coords == ("a", "b")
    assert scope.depth == 0
    assert scope.dimension == 2
    assert Scope("pc", "a").coords == ("a",)


def test_scope_is_immutable():
    scope = Scope("pc", ["a"])

    with pytest.raises(AttributeError):
        scope.depth = 3


def test_scope_validation():
    with pytest.raises(ValueError):
        Scope("pc", ["x"], -1)
    with pytest.raises(ValueError):
        Scope("pc", [], 0)


@pytest.mark.parametrize(
    "depth, level, admitted",
    [(0, 1, True), (0, 50, True), (1, 1, True), (1, 2, False), (3, 3, True), (3, 4, False)],
)
def test_scope_depth_window(depth, level, admitted):
    assert Scope("pc", ["x"], depth).admits_level(level) is admitted
