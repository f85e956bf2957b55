"""
Test script for core watermark removal functionality.

Run with: python -m pytest tests/test_core.py -v
Or simply: python tests/test_core.py
"""

import math
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
from PIL import Image

from clearnano.core.blend import MAX_ALPHA, alpha_map, blend
from clearnano.core.errors import MaskShapeError, NoSuitableMaskError, RegionOutOfBoundsError
from clearnano.core.locator import locate
from clearnano.core.masks import Mask, MaskConfig, MaskRegistry, default_mask_configs


def create_mask_array(size: int, peak: int = 200) -> np.ndarray:
    """
    Create a radial grayscale mask: `peak` at the center, 0 at the corners.

    The alpha channel is opaque so that tests catch any code that reads it.
    """
    yy, xx = np.mgrid[0:size, 0:size]
    center = (size - 1) / 2
    dist = np.sqrt((xx - center) ** 2 + (yy - center) ** 2)
    intensity = np.clip(peak * (1 - dist / (size / 2)), 0, 255).astype(np.uint8)

    arr = np.zeros((size, size, 4), dtype=np.uint8)
    arr[:, :, :3] = intensity[:, :, np.newaxis]
    arr[:, :, 3] = 255
    return arr


def create_region(size: int, alpha_value: int = 255) -> np.ndarray:
    """Create an RGBA region with varied color values."""
    yy, xx = np.mgrid[0:size, 0:size]
    region = np.zeros((size, size, 4), dtype=np.uint8)
    region[:, :, 0] = (xx * 255 // max(1, size - 1)).astype(np.uint8)
    region[:, :, 1] = (yy * 255 // max(1, size - 1)).astype(np.uint8)
    region[:, :, 2] = 200
    region[:, :, 3] = alpha_value
    return region


def expected_channel(value: int, alpha: float, max_alpha: float = MAX_ALPHA) -> int:
    """Reference reverse blend for a single channel."""
    alpha = min(alpha, max_alpha)
    recovered = math.floor((value - alpha * 255) / (1 - alpha) + 0.5)
    return max(0, min(255, recovered))


# ===== Locator =====

def test_locate_large_bucket():
    """Both dimensions above 1024 select the 96px mask with 64px margin."""
    for width, height in [(1025, 1025), (2000, 1500), (4096, 4096)]:
        placement = locate(width, height)
        assert placement.mask_size == 96
        assert placement.margin == 64
        assert placement.origin_x == width - 64 - 96
        assert placement.origin_y == height - 64 - 96


def test_locate_small_bucket():
    """Any dimension at or below 1024 selects the 48px mask."""
    for width, height in [(800, 600), (1024, 1024), (5000, 1024), (1024, 5000), (80, 80)]:
        placement = locate(width, height)
        assert placement.mask_size == 48, (width, height)
        assert placement.margin == 32, (width, height)


def test_locate_origin_example():
    placement = locate(800, 600)
    assert (placement.origin_x, placement.origin_y) == (720, 520)
    assert placement.box == (720, 520, 768, 568)


def test_locate_exact_fit():
    """80x80 holds a 48px mask plus 32px margin with origin at zero."""
    placement = locate(80, 80)
    assert (placement.origin_x, placement.origin_y) == (0, 0)


def test_locate_too_small():
    for width, height in [(60, 60), (79, 400), (400, 79), (0, 0)]:
        try:
            locate(width, height)
        except RegionOutOfBoundsError:
            continue
        raise AssertionError(f"{width}x{height} should be out of bounds")


# ===== Masks =====

def test_mask_is_read_only_copy():
    source = create_mask_array(48)
    mask = Mask(size=48, pixels=source)

    assert mask.width == mask.height == 48
    assert not mask.pixels.flags.writeable
    # Caller's array is left alone
    assert source.flags.writeable
    source[0, 0, 0] = 99
    assert mask.pixels[0, 0, 0] != 99

    try:
        mask.pixels[0, 0, 0] = 1
    except ValueError:
        pass
    else:
        raise AssertionError("Mask pixels should be immutable")


def test_mask_rejects_non_square():
    try:
        Mask(size=48, pixels=np.zeros((48, 40, 4), dtype=np.uint8))
    except ValueError:
        return
    raise AssertionError("Non-square mask should be rejected")


def test_registry_loads_available_assets():
    """A missing or broken asset is skipped, the rest still load."""
    with tempfile.TemporaryDirectory() as tmp:
        asset_dir = Path(tmp)
        Image.fromarray(create_mask_array(48)).save(asset_dir / "bg_48.png")
        # bg_96.png is intentionally absent

        registry = MaskRegistry.from_directory(asset_dir)

        assert registry.sizes == [48]
        assert 48 in registry
        assert 96 not in registry
        assert registry.get(96) is None
        assert registry.require(48).size == 48

        try:
            registry.require(96)
        except NoSuitableMaskError:
            pass
        else:
            raise AssertionError("Missing mask should raise NoSuitableMaskError")


def test_registry_skips_corrupt_and_wrong_size_assets():
    with tempfile.TemporaryDirectory() as tmp:
        asset_dir = Path(tmp)
        (asset_dir / "broken.png").write_bytes(b"definitely not a png")
        Image.fromarray(create_mask_array(40)).save(asset_dir / "small.png")
        Image.fromarray(create_mask_array(96)).save(asset_dir / "good.png")

        registry = MaskRegistry()
        loaded = registry.load([
            MaskConfig(size=48, asset_path=asset_dir / "broken.png"),
            MaskConfig(size=64, asset_path=asset_dir / "small.png"),
            MaskConfig(size=96, asset_path=asset_dir / "good.png"),
        ])

        assert sorted(loaded) == [96]
        assert len(registry) == 1


def test_default_mask_configs():
    configs = default_mask_configs("/masks")
    assert [c.size for c in configs] == [48, 96]
    assert configs[0].asset_path == Path("/masks") / "bg_48.png"
    assert configs[1].asset_path == Path("/masks") / "bg_96.png"


# ===== Blend =====

def test_alpha_map_uses_max_rgb():
    arr = np.zeros((2, 2, 4), dtype=np.uint8)
    arr[0, 0] = (51, 102, 0, 0)     # alpha channel ignored
    arr[1, 1] = (0, 0, 255, 0)
    amap = alpha_map(Mask(size=2, pixels=arr))
    assert amap[0, 0] == 102 / 255.0
    assert amap[1, 1] == 1.0
    assert amap[0, 1] == 0.0


def test_blend_zero_alpha_untouched():
    """Pixels under a black mask coordinate are byte-identical afterwards."""
    mask = Mask(size=48, pixels=create_mask_array(48))
    region = create_region(48)
    before = region.copy()

    blend(region, mask)

    zero = alpha_map(mask) == 0
    assert zero.any()
    assert np.array_equal(region[zero], before[zero])
    # Covered pixels did change
    assert not np.array_equal(region[~zero], before[~zero])


def test_blend_black_mask_is_noop():
    """An all-black mask leaves the whole region unchanged."""
    arr = np.zeros((48, 48, 4), dtype=np.uint8)
    arr[:, :, 3] = 255
    mask = Mask(size=48, pixels=arr)
    region = create_region(48, alpha_value=90)
    before = region.copy()

    blend(region, mask)

    assert np.array_equal(region, before)


def test_blend_full_alpha_is_clamped():
    """A white mask pixel is treated as alpha 0.99."""
    size = 16
    mask_arr = np.full((size, size, 4), 255, dtype=np.uint8)
    mask = Mask(size=size, pixels=mask_arr)

    values = np.arange(size * size, dtype=np.uint8).reshape(size, size)
    region = np.zeros((size, size, 4), dtype=np.uint8)
    region[:, :, 0] = values
    region[:, :, 1] = 255 - values
    region[:, :, 2] = 253
    region[:, :, 3] = 10
    before = region.copy()

    blend(region, mask)

    for y in range(size):
        for x in range(size):
            for c in range(3):
                assert region[y, x, c] == expected_channel(int(before[y, x, c]), 1.0)
    # 253 -> (253 - 252.45) / 0.01 = 55
    assert region[0, 0, 2] == 55
    assert np.array_equal(region[:, :, 3], before[:, :, 3])


def test_blend_matches_reference_formula():
    mask = Mask(size=48, pixels=create_mask_array(48, peak=255))
    region = create_region(48, alpha_value=128)
    before = region.copy()
    amap = alpha_map(mask)

    blend(region, mask)

    for y in range(0, 48, 5):
        for x in range(0, 48, 5):
            for c in range(3):
                if amap[y, x] == 0:
                    expected = before[y, x, c]
                else:
                    expected = expected_channel(int(before[y, x, c]), amap[y, x])
                assert region[y, x, c] == expected, (y, x, c)
    assert np.all(region[:, :, 3] == 128)


def test_blend_inverts_forward_blend():
    """Recovery is within rounding error when alpha stays below the cap."""
    mask = Mask(size=48, pixels=create_mask_array(48, peak=200))
    original = create_region(48)
    amap = alpha_map(mask)[:, :, np.newaxis]

    watermarked = original.copy()
    forward = amap * 255 + (1 - amap) * original[:, :, :3].astype(np.float64)
    watermarked[:, :, :3] = np.clip(np.round(forward), 0, 255).astype(np.uint8)

    blend(watermarked, mask)

    diff = np.abs(watermarked[:, :, :3].astype(int) - original[:, :, :3].astype(int))
    assert diff.max() <= 3


def test_blend_is_deterministic():
    mask = Mask(size=48, pixels=create_mask_array(48, peak=255))
    first = create_region(48)
    second = first.copy()

    blend(first, mask)
    blend(second, mask)

    assert np.array_equal(first, second)


def test_blend_custom_ceiling():
    mask = Mask(size=1, pixels=np.array([[[255, 255, 255, 255]]], dtype=np.uint8))
    region = np.array([[[250, 250, 250, 255]]], dtype=np.uint8)
    blend(region, mask, max_alpha=0.9)
    # (250 - 229.5) / 0.1 = 205
    assert region[0, 0, 0] == expected_channel(250, 1.0, max_alpha=0.9) == 205


def test_blend_shape_mismatch():
    mask = Mask(size=48, pixels=create_mask_array(48))
    region = create_region(96)
    try:
        blend(region, mask)
    except MaskShapeError:
        return
    raise AssertionError("Mismatched region should raise MaskShapeError")


def main():
    """Run all tests."""
    print("🧪 ClearNano Core Module Tests")
    print("=" * 50)

    tests = [
        (name, func) for name, func in sorted(globals().items())
        if name.startswith("test_") and callable(func)
    ]

    results = []
    for name, func in tests:
        try:
            func()
            results.append((name, True))
        except AssertionError as e:
            print(f"❌ {name} failed: {e}")
            results.append((name, False))

    # Summary
    print("\n" + "=" * 50)
    print("Test Summary")
    print("=" * 50)

    passed = sum(1 for _, r in results if r)
    total = len(results)

    for name, result in results:
        status = "✅ PASS" if result else "❌ FAIL"
        print(f"  {name}: {status}")

    print(f"\nTotal: {passed}/{total} tests passed")

    return passed == total


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
