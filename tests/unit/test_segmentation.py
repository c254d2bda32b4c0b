"""
Unit tests for pixel filters and section building.
"""

import numpy as np
import pytest
from PIL import Image

from glyphpatterns.config import FilterConfig
from glyphpatterns.exceptions import UnknownKindError
from glyphpatterns.graph import SectionArena
from glyphpatterns.models import Orientation, Rect, Scale
from glyphpatterns.segmentation import (
    AdaptiveDescriptor,
    AdaptiveFilter,
    FilterKind,
    GlobalDescriptor,
    GlobalFilter,
    binarize,
    build_region,
    build_sections,
    column_runs,
    create_filter,
    descriptor_from_config,
    to_grayscale,
)
from glyphpatterns.segmentation import filters


def white(h, w):
    return np.full((h, w), 255, dtype=np.uint8)


@pytest.fixture
def note_image():
    """A stem with a head on its right, plus a separate small dash."""
    image = white(20, 30)
    image[2:12, 3:5] = 0  # stem
    image[8:12, 5:10] = 0  # head
    image[15:17, 20:26] = 0  # dash
    return image


class TestGrayscale:
    """Test image input conversion."""

    def test_gray_array(self):
        """2-D arrays are used as they are."""
        gray = to_grayscale(np.array([[0, 128], [255, 7]]))

        assert gray.dtype == np.uint8
        assert gray.tolist() == [[0, 128], [255, 7]]

    def test_rgb_array(self):
        """Color arrays are converted to luminance."""
        rgb = np.zeros((2, 3, 3), dtype=np.uint8)
        rgb[0, 0] = (255, 255, 255)

        gray = to_grayscale(rgb)

        assert gray.shape == (2, 3)
        assert gray[0, 0] == 255
        assert gray[1, 1] == 0

    def test_pil_image(self):
        """PIL images are accepted in any mode."""
        image = Image.new("RGB", (4, 3), color=(255, 255, 255))

        gray = to_grayscale(image)

        assert gray.shape == (3, 4)
        assert (gray == 255).all()

    def test_unsupported_shape(self):
        """1-D data is not an image."""
        with pytest.raises(ValueError, match="Unsupported"):
            to_grayscale(np.zeros(5))


class TestFilters:
    """Test the pixel filters."""

    def test_global_filter(self):
        """Foreground at or below the threshold."""
        mask = GlobalFilter(GlobalDescriptor(threshold=140)).foreground(
            np.array([[0, 200], [140, 141]], dtype=np.uint8)
        )

        assert mask.tolist() == [[True, False], [True, False]]

    def test_adaptive_uniform_background(self):
        """A uniform white page has no foreground."""
        mask = AdaptiveFilter(AdaptiveDescriptor(window=5)).foreground(white(10, 10))

        assert not mask.any()

    def test_adaptive_dark_blob(self):
        """A dark blob on white is foreground, its surroundings are not."""
        image = white(15, 15)
        image[6:9, 6:9] = 0

        mask = AdaptiveFilter(AdaptiveDescriptor(window=7)).foreground(image)

        assert mask[6:9, 6:9].all()
        assert not mask[0:3, 0:3].any()

    def test_adaptive_uneven_lighting(self):
        """Ink stays foreground on a shaded page where a global threshold fails."""
        image = np.tile(np.linspace(255, 120, 40).astype(np.uint8), (20, 1))
        image[8:12, 30:34] = 40

        adaptive = AdaptiveFilter(AdaptiveDescriptor(window=9)).foreground(image)
        global_ = GlobalFilter(GlobalDescriptor(threshold=140)).foreground(image)

        assert adaptive[8:12, 30:34].all()
        assert not adaptive[0:4, 30:34].any()
        assert global_[0:4, 36:40].all()

    def test_window_is_odd(self):
        """Even windows are rounded up to the next odd size."""
        assert AdaptiveFilter(AdaptiveDescriptor(window=4)).window == 5
        assert AdaptiveFilter(AdaptiveDescriptor(window=1)).window == 3

    def test_box_mean(self):
        """Window means match a direct computation, borders clipped."""
        values = np.arange(20, dtype=np.float64).reshape(4, 5)

        means = filters._box_mean(values, 3)

        assert means[0, 0] == pytest.approx(values[0:2, 0:2].mean())
        assert means[2, 2] == pytest.approx(values[1:4, 1:4].mean())
        assert means[3, 4] == pytest.approx(values[2:4, 3:5].mean())


class TestFilterRegistry:
    """Test filter descriptors and their registry."""

    def test_descriptor_kinds(self):
        """Each descriptor reports its kind."""
        assert GlobalDescriptor().kind is FilterKind.GLOBAL
        assert AdaptiveDescriptor().kind is FilterKind.ADAPTIVE

    def test_from_config(self):
        """Config values reach the descriptor."""
        assert descriptor_from_config(FilterConfig(threshold=100)) == GlobalDescriptor(100)
        assert descriptor_from_config(
            FilterConfig(kind="adaptive", mean_coeff=0.5, window=15)
        ) == AdaptiveDescriptor(mean_coeff=0.5, std_dev_coeff=0.9, window=15)

    def test_create_filter(self):
        """Descriptors map to filter classes."""
        assert isinstance(create_filter(GlobalDescriptor()), GlobalFilter)
        assert isinstance(create_filter(AdaptiveDescriptor()), AdaptiveFilter)

    def test_missing_filter(self, monkeypatch):
        """A kind with no registered filter raises UnknownKindError."""
        monkeypatch.delitem(filters._FILTERS, FilterKind.ADAPTIVE)

        with pytest.raises(UnknownKindError):
            create_filter(AdaptiveDescriptor())

    def test_binarize_defaults_to_global(self):
        """Without descriptor, the global filter is used."""
        image = np.array([[0, 255], [100, 180]], dtype=np.uint8)

        assert binarize(image).tolist() == [[True, False], [True, False]]


class TestColumnRuns:
    """Test run-length encoding."""

    def test_runs(self):
        """Runs are (start, stop) pairs per column."""
        binary = np.array([[0, 1], [1, 1], [1, 0], [0, 0], [1, 1]], dtype=bool)

        assert column_runs(binary) == [[(1, 3), (4, 5)], [(0, 2), (4, 5)]]

    def test_empty_column(self):
        """Empty columns have no run."""
        assert column_runs(np.zeros((3, 2), dtype=bool)) == [[], []]


class TestBuildSections:
    """Test section building from a binary image."""

    def test_straight_bar(self):
        """Compatible runs in consecutive columns form one section."""
        binary = np.zeros((12, 6), dtype=bool)
        binary[1:11, 2:4] = True
        arena = SectionArena()

        sections = build_sections(binary, arena)

        assert len(sections) == 1
        assert sections[0].bounds == Rect(2, 1, 2, 10)
        assert sections[0].weight == 20
        assert len(sections[0].runs) == 2

    def test_length_change_starts_section(self):
        """A run too short for its predecessor starts a linked section."""
        binary = np.zeros((10, 4), dtype=bool)
        binary[0:10, 0] = True
        binary[0:2, 1] = True
        arena = SectionArena()

        first, second = build_sections(binary, arena)

        assert arena.targets(first.id) == {second.id}
        assert arena.sources(second.id) == {first.id}

    def test_fork_starts_sections(self):
        """A run touching two runs of the next column does not extend."""
        binary = np.zeros((6, 2), dtype=bool)
        binary[0:6, 0] = True
        binary[0:2, 1] = True
        binary[4:6, 1] = True
        arena = SectionArena()

        sections = build_sections(binary, arena)

        assert len(sections) == 3
        assert arena.targets(sections[0].id) == {sections[1].id, sections[2].id}

    def test_merge_starts_section(self):
        """A run touching two runs of the previous column does not extend either."""
        binary = np.zeros((6, 2), dtype=bool)
        binary[0:2, 0] = True
        binary[4:6, 0] = True
        binary[0:6, 1] = True
        arena = SectionArena()

        sections = build_sections(binary, arena)

        assert len(sections) == 3
        assert arena.sources(sections[2].id) == {sections[0].id, sections[1].id}

    def test_horizontal_sections(self):
        """Horizontal orientation works on rows."""
        binary = np.zeros((4, 12), dtype=bool)
        binary[1:3, 1:11] = True
        arena = SectionArena()

        sections = build_sections(binary, arena, Orientation.HORIZONTAL)

        assert len(sections) == 1
        assert sections[0].orientation is Orientation.HORIZONTAL
        assert sections[0].bounds == Rect(1, 1, 10, 2)


class TestBuildRegion:
    """Test image segmentation into a region."""

    def test_components_become_glyphs(self, note_image):
        """Each connected set of sections becomes one unassigned glyph."""
        region = build_region(note_image, region_id=3, scale=Scale(interline=10))

        assert region.id == 3
        assert len(region.arena) == 3
        assert [sorted(g.members) for g in region.glyphs] == [[0, 1], [2]]
        assert all(g.shape is None for g in region.glyphs)
        assert all(g.interline == 10 for g in region.glyphs)
        assert region.unowned_sections() == []
        region.check_consistency()

    def test_section_geometry(self, note_image):
        """Stem and head are separate sections."""
        region = build_region(note_image)

        assert region.arena[0].bounds == Rect(3, 2, 2, 10)
        assert region.arena[1].bounds == Rect(5, 8, 5, 4)
        assert region.arena[2].bounds == Rect(20, 15, 6, 2)

    def test_pil_input_with_adaptive_filter(self, note_image):
        """PIL images and adaptive filtering give the same glyphs here."""
        image = Image.fromarray(note_image)

        region = build_region(image, AdaptiveDescriptor(window=15))

        assert len(region.glyphs) == 2

    def test_blank_image(self):
        """A blank image yields an empty region."""
        region = build_region(white(5, 5))

        assert len(region.arena) == 0
        assert region.glyphs == []
