"""Tests for per-particle keyframe synthesis and keyframe decimation."""
import pytest

from particle_baker.core.settings import ExportSettings
from particle_baker.export.baking import make_particle_key
from particle_baker.export.decimation import (
    analyze_keyframe_density,
    calculate_densities,
    decimate_keyframes,
)
from particle_baker.export.keyframes import (
    ParticleTrack,
    build_particle_keyframes,
    color_hex,
    is_particle_visible,
    key_time,
    normalize_angle,
    round_to,
    smooth_angles,
)

from conftest import make_frames, make_snapshot


TRACK = ParticleTrack(make_particle_key("emitter_1", 0), "e1_particle_0", "e1_particle_slot_0")


# --- Helpers ---

class TestAngleHelpers:
    """Test angle unwrapping and smoothing."""

    def test_normalize_angle_wraps_to_nearest_turn(self):
        assert normalize_angle(350.0, 0.0) == -10.0
        assert normalize_angle(-350.0, 0.0) == 10.0
        assert normalize_angle(10.0, 0.0) == 10.0
        assert normalize_angle(720.0 + 5.0, 0.0) == 5.0

    def test_normalize_angle_stays_within_half_turn(self):
        for angle in (-900.0, -181.0, 179.0, 540.0):
            assert abs(normalize_angle(angle, 30.0) - 30.0) <= 180.0

    def test_smooth_angles_removes_single_spike(self):
        assert smooth_angles([0.0, 0.0, 90.0, 0.0, 0.0]) == [0.0, 0.0, 0.0, 0.0, 0.0]

    def test_smooth_angles_keeps_length(self):
        values = [5.0, 1.0, 9.0, 3.0]
        assert len(smooth_angles(values)) == len(values)
        assert smooth_angles([]) == []


class TestFormatting:
    """Test numeric and color formatting."""

    def test_color_hex(self):
        assert color_hex(1.0, 0.0, 0.0, 1.0) == "ff0000ff"
        assert color_hex(0.5, 0.5, 0.5, 0.5) == "80808080"
        assert color_hex(0.0, 0.0, 0.0, 0.0) == "00000000"

    def test_round_to(self):
        assert round_to(1.2345, 2) == pytest.approx(1.23)
        assert round_to(2.5, 0) == 3.0
        assert round_to(2.345, 1) == pytest.approx(2.3)
        assert key_time(0.30000000000000004) == 0.3

    def test_visibility_threshold(self):
        assert not is_particle_visible(None)
        assert not is_particle_visible(make_snapshot(alpha=0.0))
        assert is_particle_visible(make_snapshot(alpha=1.0 / 255.0))


# --- Synthesis ---

class TestBuildParticleKeyframes:
    """Test keyframes for a single particle."""

    def test_appear_then_hide(self):
        snap = make_snapshot(x=10.0, y=-5.0)
        frames = make_frames([snap, snap, snap, None, None])
        keys = build_particle_keyframes(frames, TRACK, ExportSettings(), "sprite_1")

        assert keys.has_appeared
        assert keys.attachment == [
            {'time': 0.0, 'name': 'sprite_1'},
            {'time': 0.3, 'name': None},
        ]
        assert keys.translate[0] == {'time': 0.0, 'x': 10.0, 'y': -5.0}
        assert keys.translate[-1] == {'time': 0.3, 'x': 10.0, 'y': -5.0, 'curve': 'stepped'}
        assert keys.scale[-1] == {'time': 0.3, 'x': 0, 'y': 0, 'curve': 'stepped'}
        assert keys.rotate[-1]['curve'] == 'stepped'

    def test_unchanged_frames_add_no_keys(self):
        snap = make_snapshot()
        frames = make_frames([snap] * 5)
        keys = build_particle_keyframes(frames, TRACK, ExportSettings(), "sprite_1")
        # First and last frame only
        assert [k['time'] for k in keys.translate] == [0.0, 0.4]
        assert [k['time'] for k in keys.rgba] == [0.0, 0.4]
        assert len(keys.attachment) == 1

    def test_position_threshold(self):
        frames = make_frames([make_snapshot(x=5.0 * i) for i in range(5)])
        keys = build_particle_keyframes(frames, TRACK, ExportSettings(position_threshold=12.0), "sprite_1")
        assert [k['time'] for k in keys.translate] == [0.0, 0.3, 0.4]

    def test_reappearing_particle_is_not_stepped(self):
        snap = make_snapshot()
        frames = make_frames([snap, None, snap, snap])
        keys = build_particle_keyframes(frames, TRACK, ExportSettings(), "sprite_1")
        assert [k['name'] for k in keys.attachment] == ['sprite_1', None, 'sprite_1']
        reappear = [k for k in keys.translate if k['time'] == 0.2]
        assert reappear and 'curve' not in reappear[0]

    def test_transparent_particle_never_appears(self):
        frames = make_frames([make_snapshot(alpha=0.0)] * 3)
        keys = build_particle_keyframes(frames, TRACK, ExportSettings(), "sprite_1")
        assert not keys.has_appeared
        assert keys.bone_timelines() == {}
        assert keys.slot_timelines() == {}

    def test_disabled_tracks_are_omitted(self):
        frames = make_frames([make_snapshot()] * 3)
        export = ExportSettings(export_translate=False, export_color=False)
        keys = build_particle_keyframes(frames, TRACK, export, "sprite_1")
        assert set(keys.bone_timelines()) == {'rotate', 'scale'}
        assert set(keys.slot_timelines()) == {'attachment'}

    def test_color_keys_are_hex(self):
        frames = make_frames([make_snapshot(r=255, g=0, b=0, alpha=1.0)] * 2)
        keys = build_particle_keyframes(frames, TRACK, ExportSettings(), "sprite_1")
        assert keys.rgba[0]['color'] == "ff0000ff"


# --- Decimation ---

def _keys(times, stepped=()):
    keys = []
    for t in times:
        key = {'time': t, 'x': 0.0, 'y': 0.0}
        if t in stepped:
            key['curve'] = 'stepped'
        keys.append(key)
    return keys


CLUSTER = [0.0, 1.0, 2.0] + [round(2.0 + i / 100, 2) for i in range(1, 11)] + [3.0, 4.0]


class TestDecimation:
    """Test density-based keyframe thinning."""

    def test_short_lists_unchanged(self):
        keys = _keys([0.0, 0.01])
        assert decimate_keyframes(keys, 50) is keys

    @pytest.mark.parametrize("percentage", [0, -10, 100, 150])
    def test_out_of_range_percentage_unchanged(self, percentage):
        keys = _keys(CLUSTER)
        assert decimate_keyframes(keys, percentage) is keys

    def test_even_spacing_unchanged(self):
        keys = _keys([float(i) for i in range(10)])
        assert decimate_keyframes(keys, 50) is keys

    def test_dense_region_thinned(self):
        keys = _keys(CLUSTER)
        result = decimate_keyframes(keys, 50)
        times = [k['time'] for k in result]

        assert len(result) < len(keys)
        assert times[0] == 0.0 and times[-1] == 4.0
        # Ends of the dense run survive
        assert 2.0 in times and 2.1 in times
        assert times == sorted(times)

    def test_stepped_keys_survive(self):
        keys = _keys(CLUSTER, stepped={2.02})
        result = decimate_keyframes(keys, 50)
        assert 2.02 in [k['time'] for k in result]

    def test_densities(self):
        densities = calculate_densities(_keys(CLUSTER))
        flagged = [CLUSTER[d.index] for d in densities if d.is_high_density]
        assert 0.0 not in flagged and 4.0 not in flagged
        assert 2.05 in flagged

    def test_analyze(self):
        stats = analyze_keyframe_density(_keys(CLUSTER))
        assert stats['total_keyframes'] == len(CLUSTER)
        assert stats['high_density_keyframes'] > 0
        assert 0 < stats['high_density_percentage'] < 100
        assert len(stats['densities']) == len(CLUSTER)

    def test_decimation_settles_once_nothing_is_dense(self):
        # A tight run inside evenly spaced keys thins back to the even spacing
        keys = _keys([0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.52, 0.54, 0.56, 0.58, 0.6, 0.7, 0.8, 0.9, 1.0])
        for _ in range(10):
            if analyze_keyframe_density(keys)['high_density_keyframes'] == 0:
                break
            keys = decimate_keyframes(keys, 90)

        assert analyze_keyframe_density(keys)['high_density_keyframes'] == 0
        assert len(keys) < 15
        again = decimate_keyframes(keys, 90)
        assert again == keys
        assert decimate_keyframes(again, 50) == keys
