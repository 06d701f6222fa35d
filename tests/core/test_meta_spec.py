from __future__ import annotations

import pytest

from flowfield.core.parameters import ParamMeta, meta_dict_from_user, meta_from_spec


def test_meta_from_spec_normalizes_dict() -> None:
    meta = meta_from_spec({"kind": "float", "ui_min": 0.0, "ui_max": 1.0})
    assert meta == ParamMeta(kind="float", ui_min=0.0, ui_max=1.0)


def test_meta_from_spec_passes_param_meta_through() -> None:
    meta = ParamMeta(kind="bool")
    assert meta_from_spec(meta) is meta


@pytest.mark.parametrize(
    "spec",
    [
        {"ui_min": 0.0},
        {"kind": "vec3"},
        {"kind": "float", "step": 0.1},
        {"kind": "float", "ui_min": 2.0, "ui_max": 1.0},
    ],
)
def test_meta_from_spec_rejects_invalid(spec: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        meta_from_spec(spec)


def test_meta_from_spec_rejects_string_choices() -> None:
    with pytest.raises(TypeError):
        meta_from_spec({"kind": "choice", "choices": "abc"})


def test_meta_dict_from_user_requires_str_keys() -> None:
    with pytest.raises(TypeError):
        meta_dict_from_user({1: {"kind": "int"}})  # type: ignore[dict-item]
