"""
Test script for tensortrace scripts replayed with PyTorch.
"""

import io
import sys
from pathlib import Path

# Add parent directory to path to import tensortrace
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np

try:
    import torch
except ImportError:
    torch = None

import tensortrace
from tensortrace import BufferView, ElementType, TraceFormat, TraceOptions


def _run_script(text):
    namespace = {}
    exec(compile(text, "<trace>", "exec"), namespace)
    return {key: value for key, value in namespace.items() if isinstance(value, torch.Tensor)}


def test_script_replays_tensors():
    """Test that a generated script rebuilds the traced tensors."""
    print("=" * 60)
    print("Testing script replay with PyTorch")
    print("=" * 60)

    if torch is None:
        print("PyTorch is not installed - skipping")
        return

    arrays = [
        np.array([1.0, 2.0], dtype=np.float32),
        np.array([[1.5, -2.25], [3.0, 4.0]], dtype=np.float64),
        np.array([[1, -2, 3]], dtype=np.int32),
        np.array([0, 255, 7], dtype=np.uint8),
        np.array(42, dtype=np.int64),
        np.random.default_rng(0).standard_normal((3, 4)).astype(np.float32),
    ]
    stream = io.StringIO()
    sink = tensortrace.stream_sink(stream, TraceOptions(format=TraceFormat.SCRIPT_LITERAL))
    sink.trace("main$dispatch_0", [BufferView.from_array(a) for a in arrays])
    sink.release()

    tensors = _run_script(stream.getvalue())
    assert len(tensors) == len(arrays)
    for position, array in enumerate(arrays):
        tensor = tensors[f"main_dispatch_0_{position:08x}"]
        expected = torch.from_numpy(array.copy())
        print(f"   {position}: {tuple(tensor.shape)} {tensor.dtype}")
        assert tensor.dtype == expected.dtype
        assert torch.equal(tensor, expected)

    print("\n✓ Script replay tests completed successfully!")


def test_hash_matches_replayed_bytes():
    """Test that hash comments match the bytes of the rebuilt tensors."""
    print("\n" + "=" * 60)
    print("Testing hash comments against PyTorch bytes")
    print("=" * 60)

    if torch is None:
        print("PyTorch is not installed - skipping")
        return

    bf16_bits = np.array([0x3f80, 0x4000, 0xbfc0], dtype="<u2")
    views = [
        BufferView(bf16_bits.tobytes(), (3,), ElementType.BFLOAT_16),
        BufferView.from_array(np.array([0.5, -1.0], dtype=np.float16)),
    ]
    stream = io.StringIO()
    with tensortrace.stream_sink(stream, TraceOptions(format=TraceFormat.SCRIPT_LITERAL)) as sink:
        sink.trace("mixed", views)
    text = stream.getvalue()
    hashes = [line.split("=", 1)[1] for line in text.splitlines() if line.startswith("# hash=")]

    tensors = _run_script(text)
    bf16 = tensors["mixed_00000000"]
    assert bf16.dtype == torch.bfloat16
    assert bf16.tolist() == [1.0, 2.0, -1.5]
    raw = bf16.view(torch.int16).numpy().tobytes()
    assert hashes[0] == f"0x{tensortrace.fnv1a_64(raw):016x}"

    f16 = tensors["mixed_00000001"]
    assert f16.dtype == torch.float16
    assert hashes[1] == f"0x{tensortrace.fnv1a_64(f16.numpy().tobytes()):016x}"

    print("\n✓ Hash comparison tests completed successfully!")


def main():
    """Run all PyTorch tests."""
    print("\n" + "=" * 60)
    print("TENSORTRACE - PYTORCH TESTS")
    print("=" * 60)

    if torch is None:
        print("PyTorch is not installed. Please install it with: pip install torch")
        sys.exit(1)

    try:
        test_script_replays_tensors()
        test_hash_matches_replayed_bytes()

        print("\n" + "=" * 60)
        print("ALL PYTORCH TESTS PASSED! ✓")
        print("=" * 60)

    except Exception as e:
        print(f"\n✗ Test failed with error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
