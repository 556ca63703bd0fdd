import pytest

from logfollow import PositionRecord, StateStore


def test_save_then_load(tmp_path):
    store = StateStore(tmp_path / "pos.state")
    record = PositionRecord(device=2049, inode=131, offset=4096)

    store.save(record)

    assert (tmp_path / "pos.state").read_text(encoding="ascii") == "2049 131 4096"
    assert store.load() == record


def test_save_overwrites_previous_record(tmp_path):
    store = StateStore(tmp_path / "pos.state")
    store.save(PositionRecord(1, 2, 3))
    store.save(PositionRecord(1, 2, 30))

    assert store.load() == PositionRecord(1, 2, 30)
    # no temporary files left behind
    assert [p.name for p in tmp_path.iterdir()] == ["pos.state"]


def test_missing_file_loads_as_none(tmp_path):
    assert StateStore(tmp_path / "absent.state").load() is None


def test_unreadable_path_loads_as_none(tmp_path):
    # a directory cannot be read as a state file
    assert StateStore(tmp_path).load() is None


@pytest.mark.parametrize(
    "content",
    [
        "",
        "1 2",
        "1 2 3 4",
        "a b c",
        "1 2 -5",
        "1.5 2 3",
        f"1 2 {2**63}",
        f"1 2 {2**70}",
    ],
)
def test_malformed_content_loads_as_none(tmp_path, content):
    path = tmp_path / "pos.state"
    path.write_text(content, encoding="ascii")

    assert StateStore(path).load() is None


def test_surrounding_whitespace_is_tolerated(tmp_path):
    path = tmp_path / "pos.state"
    path.write_text("  7 8\t9\n", encoding="ascii")

    assert StateStore(path).load() == PositionRecord(7, 8, 9)


def test_clear(tmp_path):
    store = StateStore(tmp_path / "pos.state")
    store.save(PositionRecord(1, 2, 3))

    assert store.clear() is True
    assert store.load() is None
    assert store.clear() is False


def test_record_matches_identity():
    record = PositionRecord(device=5, inode=9, offset=100)

    assert record.matches((5, 9))
    assert not record.matches((5, 10))
    assert not record.matches((6, 9))
    assert not record.matches(None)
