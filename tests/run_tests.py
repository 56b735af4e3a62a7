"""
Main test runner - runs every test script in its own interpreter.
"""

import sys
import subprocess
from pathlib import Path


def run_test(test_file, description):
    """Run a single test file and report whether it exited cleanly."""
    print(f"\n{'=' * 70}")
    print(f"Running: {description}")
    print(f"{'=' * 70}")

    test_path = Path(__file__).parent / test_file

    result = subprocess.run([sys.executable, str(test_path)], text=True)
    return result.returncode == 0


def main():
    """Run all test scripts."""
    print("\n" + "=" * 70)
    print("TENSORTRACE - COMPLETE TEST SUITE")
    print("=" * 70)

    tests = [
        ("test_basic.py", "Building blocks and null/callback sinks (no external dependencies)"),
        ("test_numpy.py", "Formatters and stream sinks"),
    ]

    # Replaying generated scripts needs PyTorch
    try:
        import torch
        tests.append(("test_torch.py", "PyTorch script replay tests"))
    except ImportError:
        print("\n⚠ PyTorch not installed - skipping script replay tests")
        print("  Install with: pip install torch")

    results = []
    for test_file, description in tests:
        success = run_test(test_file, description)
        results.append((test_file, description, success))

    # Summary
    print("\n" + "=" * 70)
    print("TEST SUMMARY")
    print("=" * 70)

    passed = sum(1 for _, _, success in results if success)
    total = len(results)

    for test_file, description, success in results:
        status = "✓ PASSED" if success else "✗ FAILED"
        print(f"{status}: {description}")

    print(f"\n{passed}/{total} test suites passed")

    if passed == total:
        print("\n🎉 ALL TESTS PASSED!")
        return 0
    else:
        print("\n❌ SOME TESTS FAILED")
        return 1


if __name__ == "__main__":
    sys.exit(main())
