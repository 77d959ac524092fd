#!/usr/bin/env python3
"""
Basic usage example for cugrep.

Demonstrates:
- Backend detection
- GrepEngine context manager
- Anchored, case-insensitive and inverted searches
- Driving the Executor and ResultReconciler directly
"""

import os
import tempfile

import cugrep as cg


def main():
    print("=" * 60)
    print("cugrep - Basic Usage Example")
    print("=" * 60)
    print()

    # Check available backends
    print("Available backends:")
    print("  CPU: Always available")
    print(f"  CUDA: {cg.is_cuda_available()}")
    print(f"  Default: {cg.get_default_backend()}")
    print()

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "fruit.txt")
        with open(path, "wb") as f:
            f.write(b"apple\nbanana\nApple Pie\n")

        searches = [
            ("apple", {}),
            ("apple", {"ignore_case": True}),
            ("apple", {"ignore_case": True, "invert": True}),
            ("^Apple", {}),
            ("le$", {}),
        ]
        for pattern, flags in searches:
            with cg.GrepEngine(pattern, backend="auto", **flags) as engine:
                result = engine.search(path)
                print(f"{engine} {flags or ''}")
                for _, line in result.lines:
                    print(f"  {line.decode()}")
            print()

        # Lower level: one executor, several buffers
        print("Executor with a shared match buffer...")
        pattern = cg.compile_pattern("an")
        with cg.Executor(pattern, backend="auto") as ex:
            reconciler = cg.ResultReconciler(ex.matches)
            print(f"  {ex}")
            print(f"  {ex.matches}")
            for data in (b"banana\ncherry\n", b"mango\nkiwi\n"):
                windows = ex.scan(data)
                lines = reconciler.drain(data)
                print(f"  {windows} window(s): {[line.decode() for _, line in lines]}")
            print(f"  records used: {reconciler.baseline}")
    print()

    print("=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
