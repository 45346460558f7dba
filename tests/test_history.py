from tee_print.history import EditHistory, Snapshot
from tee_print.layers import PlacementSpec, TextLayer


def _snap(center_x, side="front"):
    return Snapshot((TextLayer(PlacementSpec(center_x, 0.5), text="A"),), side)


def test_undo_redo():
    history = EditHistory(_snap(0.5))
    history.push(_snap(0.6))
    history.push(_snap(0.7))

    assert history.undo() == _snap(0.6)
    assert history.undo() == _snap(0.5)
    assert history.undo() is None
    assert not history.can_undo
    assert history.redo() == _snap(0.6)
    assert history.can_redo


def test_duplicate_snapshot_not_recorded():
    history = EditHistory(_snap(0.5))
    assert not history.push(_snap(0.5))
    assert len(history) == 1


def test_push_after_undo_drops_redo_tail():
    history = EditHistory(_snap(0.5))
    history.push(_snap(0.6))
    history.undo()
    history.push(_snap(0.5, side="back"))
    assert not history.can_redo
    assert len(history) == 2
    assert history.current.side == "back"


def test_limit():
    history = EditHistory(_snap(0.0), limit=3)
    for i in range(1, 6):
        history.push(_snap(i / 10))
    assert len(history) == 3
    assert history.current == _snap(0.5)
    history.undo()
    history.undo()
    assert not history.can_undo


def test_empty_history():
    history = EditHistory()
    assert history.current is None
    assert history.undo() is None
    assert history.redo() is None
