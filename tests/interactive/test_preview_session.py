"""PreviewSession（pyglet 非依存のプレビュー状態）のテスト。"""

from __future__ import annotations

from flowfield.core.config import FlowfieldConfig
from flowfield.interactive.window import PreviewSession


def _session(**changes) -> PreviewSession:
    cfg = FlowfieldConfig(stroke_count=60, stroke_segment_length=4.0).with_changes(**changes)
    return PreviewSession(cfg, canvas_size=(48, 32), seed=3, batch_size=25)


def test_tick_draws_in_batches_and_marks_dirty() -> None:
    session = _session()
    session.frame_rgba()
    assert not session.dirty
    assert session.tick() == 25
    assert session.dirty
    assert session.tick() == 25
    assert session.tick() == 10
    session.frame_rgba()
    assert session.tick() == 0
    assert not session.dirty


def test_frame_is_rgba_of_canvas_size() -> None:
    session = _session()
    assert len(session.frame_rgba()) == 48 * 32 * 4


def test_resize_restarts_drawing() -> None:
    session = _session()
    session.tick()
    session.resize(64, 40)
    assert session.size == (64, 40)
    assert session.compositor.strokes_drawn == 0
    assert session.compositor.canvas_size == (64.0, 40.0)
    assert len(session.frame_rgba()) == 64 * 40 * 4


def test_resize_to_zero_is_ignored() -> None:
    session = _session()
    session.tick()
    session.resize(0, 0)
    assert session.size == (48, 32)
    assert session.compositor.strokes_drawn == 25


def test_reconfigure_applies_new_config() -> None:
    session = _session()
    session.tick()
    session.reconfigure(session.compositor.config.with_changes(stroke_count=5))
    assert session.compositor.strokes_drawn == 0
    assert session.tick() == 5
    assert session.compositor.is_complete
