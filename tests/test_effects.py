"""Tests for effect selection policies and intensity mappings."""

import pytest

from cutflow.effects import (
    amplify_scale,
    effect_filters,
    fade_window,
    select_effects,
    soften_radius,
    soften_sigma,
)
from cutflow.timeline import Effect


RES = (640, 360)


class TestMappings:
    def test_amplify_scale_range(self):
        assert amplify_scale(0) == 1.0
        assert amplify_scale(100) == 1.5
        assert amplify_scale(50) == pytest.approx(1.25)

    def test_fade_window_capped(self):
        assert fade_window(0.0, 10.0) == 1.0
        assert fade_window(2.0, 3.0) == 0.5

    def test_soften_radius_range(self):
        assert soften_radius(0) == 1
        assert soften_radius(100) == 5
        assert soften_radius(50) in (2, 3)

    def test_soften_sigma_range(self):
        assert soften_sigma(0) == 0
        assert soften_sigma(100) == 10


class TestSelectEffects:
    def _effects(self):
        return [
            Effect("late", "soften", start=6.0, end=8.0),
            Effect("sparkly", "sparkle", start=0.0, end=1.0),
            Effect("early", "fade", start=2.0, end=4.0),
        ]

    def test_first_policy_keeps_earliest_allowed(self):
        chosen = select_effects(self._effects(), "first")
        assert [e.id for e in chosen] == ["early"]

    def test_layered_policy_keeps_all_allowed_in_order(self):
        chosen = select_effects(self._effects(), "layered")
        assert [e.id for e in chosen] == ["early", "late"]

    def test_sparkle_never_selected(self):
        only = [Effect("s", "sparkle", start=0.0, end=2.0)]
        assert select_effects(only, "first") == []

    def test_unknown_policy_raises(self):
        with pytest.raises(ValueError, match="policy"):
            select_effects([], "random")


class TestEffectFilters:
    def test_amplify_is_time_gated_zoom(self):
        fx = Effect("z", "amplify", intensity=100, start=1.0, end=3.0)
        (f,) = effect_filters(fx, "first", RES, 30)
        assert f.name == "zoompan"
        assert f.arg("z") == "'if(between(in_time,1.000,3.000),1.5,1)'"
        assert f.arg("s") == "640x360"
        assert f.arg("fps") == "30"

    def test_fade_in_and_out(self):
        fx = Effect("f", "fade", start=2.0, end=6.0)
        fade_in, fade_out = effect_filters(fx, "first", RES, 30)
        assert fade_in.render() == "fade=t=in:st=2.000:d=1.000"
        assert fade_out.render() == "fade=t=out:st=5.000:d=1.000"

    def test_soften_first_uses_boxblur(self):
        fx = Effect("b", "soften", intensity=100, start=0.0, end=2.0)
        (f,) = effect_filters(fx, "first", RES, 30)
        assert f.render() == "boxblur=5:5:enable='between(t,0.000,2.000)'"

    def test_soften_layered_uses_gblur(self):
        fx = Effect("b", "soften", intensity=50, start=0.0, end=2.0)
        (f,) = effect_filters(fx, "layered", RES, 30)
        assert f.name == "gblur"
        assert f.arg("sigma") == "5"
        assert f.arg("enable") == "'between(t,0.000,2.000)'"

    def test_sparkle_has_no_filter(self):
        with pytest.raises(ValueError, match="no filter"):
            effect_filters(Effect("s", "sparkle"), "first", RES, 30)
