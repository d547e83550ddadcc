import pytest

from reservoir_sync.orchestration.arena import ManagerArena


def test_insert_assigns_increasing_keys() -> None:
    arena: ManagerArena[str] = ManagerArena()
    assert [arena.insert(x) for x in "abc"] == [0, 1, 2]
    assert len(arena) == 3
    assert arena.values() == ["a", "b", "c"]


def test_remove_frees_lowest_key_first() -> None:
    arena: ManagerArena[str] = ManagerArena()
    for x in "abcd":
        arena.insert(x)

    assert arena.remove(2) == "c"
    assert arena.remove(0) == "a"
    assert 0 not in arena and 2 not in arena
    assert len(arena) == 2

    assert arena.insert("e") == 0
    assert arena.insert("f") == 2
    assert arena.insert("g") == 4


def test_get_missing_key_raises() -> None:
    arena: ManagerArena[str] = ManagerArena()
    key = arena.insert("a")
    arena.remove(key)

    with pytest.raises(KeyError):
        arena.get(key)
    with pytest.raises(KeyError):
        arena.remove(key)
    with pytest.raises(KeyError):
        arena.get(7)


def test_remove_while_iterating() -> None:
    arena: ManagerArena[int] = ManagerArena()
    for x in range(5):
        arena.insert(x)

    for key in arena:
        if key % 2:
            arena.remove(key)

    assert list(arena) == [0, 2, 4]
    assert [v for _, v in arena.items()] == [0, 2, 4]
