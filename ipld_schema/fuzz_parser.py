#!/usr/bin/env python3
"""
Differential fuzzer for the IPLD schema parsers.

Generates random and mutated schemas and feeds them to both the hand-written
parser and the Lark grammar parser, looking for:
- Crashes (exceptions other than SchemaError)
- Hangs (infinite loops)
- Mismatches (one parser accepts what the other rejects, or the ASTs differ)

Usage:
    python -m ipld_schema.fuzz_parser [--duration MINUTES] [--seed SEED]

Findings are saved to ./fuzz_findings/
"""

import argparse
import hashlib
import random
import signal
import string
import time
import traceback
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from . import schema_parser, schema_peg_parser
from .schema_errors import SchemaError


class ParseTimeout(Exception):
    pass


@contextmanager
def timeout(seconds):
    """Context manager for timeout on Unix systems."""
    def handler(signum, frame):
        raise ParseTimeout(f"Timed out after {seconds} seconds")

    if hasattr(signal, 'SIGALRM'):
        old_handler = signal.signal(signal.SIGALRM, handler)
        signal.alarm(seconds)
        try:
            yield
        finally:
            signal.alarm(0)
            signal.signal(signal.SIGALRM, old_handler)
    else:
        # Windows fallback - no timeout
        yield


class Fuzzer:
    """Schema parser fuzzer."""

    KEYWORDS = [
        "type", "representation", "advanced", "optional", "nullable", "struct",
        "enum", "Bool", "String", "Bytes", "Int", "Float", "map", "list", "link", "RMT",
    ]
    SYMBOLS = ["{", "}", "[", "]", ":", ",", "&", "//", "/*", "*/", "/"]
    SCALARS = ["Bool", "String", "Bytes", "Int", "Float"]
    IDENTIFIERS = ["Person", "Address", "Color", "name", "age", "friends", "red", "blue", "A", "B", "x_1"]

    # Seed corpus - known valid inputs
    SEED_CORPUS = [
        "type T Bool",
        "type T String",
        "type T [String]",
        "type T list nullable Int",
        "type T { String : Int }",
        "type T map { String : nullable [Bytes] }",
        "type T &Person",
        "type T link Person",
        "type T Person",
        "type T [Int] representation advanced RMT",
        "type T { String : Int } representation advanced RMT",
        "type Color enum { red, green, blue }",
        "type Color enum { red, }",
        "type P struct { name String age optional Int bio optional nullable String }",
        "type P struct { friends [Person] home &Address tags { String : [String] } }",
        "// comment\ntype T Int /* block\ncomment */",
    ]

    def __init__(self, seed=None, findings_dir: Path = Path("fuzz_findings")):
        self.rng = random.Random(seed)
        self.findings_dir = findings_dir
        self.stats = {
            "iterations": 0,
            "parse_ok": 0,
            "parse_error": 0,
            "crashes": 0,
            "timeouts": 0,
            "mismatches": 0,
            "unique_findings": set(),
        }
        self.start_time = None

        self.findings_dir.mkdir(exist_ok=True)

    def random_identifier(self) -> str:
        if self.rng.random() < 0.7:
            return self.rng.choice(self.IDENTIFIERS)
        length = self.rng.randint(1, 12)
        return "".join(self.rng.choices(string.ascii_letters + string.digits + "_", k=length))

    def random_node(self, depth=0) -> str:
        """Generate a random node value."""
        if depth > 3 or self.rng.random() < 0.4:
            choice = self.rng.randint(0, 2)
            if choice == 0:
                return self.rng.choice(self.SCALARS)
            elif choice == 1:
                return f"&{self.random_identifier()}"
            return self.random_identifier()

        nullable = "nullable " if self.rng.random() < 0.3 else ""
        if self.rng.random() < 0.5:
            return f"[{nullable}{self.random_node(depth + 1)}]"
        return f"{{String : {nullable}{self.random_node(depth + 1)}}}"

    def random_type_def(self) -> str:
        choice = self.rng.randint(0, 7)
        advanced = " representation advanced RMT" if self.rng.random() < 0.2 else ""
        if choice == 0:
            return self.rng.choice(self.SCALARS)
        elif choice == 1:
            fields = []
            for _ in range(self.rng.randint(0, 4)):
                mods = ""
                if self.rng.random() < 0.3:
                    mods += "optional "
                if self.rng.random() < 0.3:
                    mods += "nullable "
                fields.append(f"{self.random_identifier()} {mods}{self.random_node()}")
            return "struct { " + "\n".join(fields) + " }"
        elif choice == 2:
            members = ", ".join(self.random_identifier() for _ in range(self.rng.randint(0, 4)))
            return f"enum {{ {members} }}"
        elif choice == 3:
            keyword = "map " if self.rng.random() < 0.5 else ""
            return f"{keyword}{{String : {self.random_node()}}}{advanced}"
        elif choice == 4:
            return f"list {self.random_node()}{advanced}"
        elif choice == 5:
            return f"[{self.random_node()}]{advanced}"
        elif choice == 6:
            return self.rng.choice(["link ", "&"]) + self.random_identifier()
        return self.random_identifier()

    def generate_random(self) -> str:
        """Generate a random, usually valid, schema."""
        decls = [f"type {self.random_identifier()} {self.random_type_def()}"
                 for _ in range(self.rng.randint(1, 5))]
        return "\n".join(decls)

    def mutate(self, input_str: str) -> str:
        mutations = [
            self._mutate_insert_token,
            self._mutate_delete_chunk,
            self._mutate_repeat_chunk,
            self._mutate_flip_char,
        ]
        return self.rng.choice(mutations)(input_str)

    def _mutate_insert_token(self, s: str) -> str:
        pos = self.rng.randint(0, len(s))
        chars = self.rng.choice([
            self.rng.choice(self.KEYWORDS),
            self.rng.choice(self.SYMBOLS),
            self.random_identifier(),
            " " * self.rng.randint(1, 3),
            "\n",
            "\t",
        ])
        return s[:pos] + " " + chars + " " + s[pos:]

    def _mutate_delete_chunk(self, s: str) -> str:
        if len(s) < 2:
            return s
        start = self.rng.randint(0, len(s) - 1)
        end = self.rng.randint(start + 1, min(start + 10, len(s)))
        return s[:start] + s[end:]

    def _mutate_repeat_chunk(self, s: str) -> str:
        if len(s) < 2:
            return s * 2
        start = self.rng.randint(0, len(s) - 1)
        end = self.rng.randint(start + 1, min(start + 10, len(s)))
        chunk = s[start:end]
        return s[:end] + chunk * self.rng.randint(1, 3) + s[end:]

    def _mutate_flip_char(self, s: str) -> str:
        if not s:
            return s
        pos = self.rng.randint(0, len(s) - 1)
        new_char = chr(ord(s[pos]) ^ self.rng.randint(1, 127))
        return s[:pos] + new_char + s[pos + 1:]

    def save_finding(self, input_str: str, detail: str, category: str):
        """Save an interesting finding to disk."""
        hash_val = hashlib.md5(input_str.encode('utf-8', errors='replace')).hexdigest()[:8]

        if hash_val in self.stats["unique_findings"]:
            return

        self.stats["unique_findings"].add(hash_val)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = self.findings_dir / f"{category}_{timestamp}_{hash_val}.txt"

        with open(filename, 'w') as f:
            f.write(f"Category: {category}\n")
            f.write(f"Detail: {detail}\n")
            f.write(f"Timestamp: {timestamp}\n")
            f.write("\n--- Input ---\n")
            f.write(input_str)
            f.write("\n")

        print(f"\n[!] Saved finding: {filename}")

    def _run_parser(self, parse, input_str: str):
        """Return ('ok', schema) or ('error', exception)."""
        try:
            with timeout(5):
                return "ok", parse(input_str)
        except SchemaError as e:
            return "error", e

    def test_input(self, input_str: str) -> bool:
        """Test a single input. Returns True if interesting."""
        try:
            hand_status, hand_result = self._run_parser(schema_parser.parse, input_str)
            peg_status, peg_result = self._run_parser(schema_peg_parser.parse, input_str)
        except ParseTimeout as e:
            self.stats["timeouts"] += 1
            self.save_finding(input_str, str(e), "timeout")
            return True
        except Exception as e:
            self.stats["crashes"] += 1
            self.save_finding(input_str, f"{type(e).__name__}: {e}\n{traceback.format_exc()}", "crash")
            return True

        if hand_status != peg_status:
            self.stats["mismatches"] += 1
            self.save_finding(
                input_str,
                f"handwritten={hand_status} ({hand_result!s:.200}) peg={peg_status} ({peg_result!s:.200})",
                "mismatch",
            )
            return True

        if hand_status == "ok" and hand_result.types != peg_result.types:
            self.stats["mismatches"] += 1
            self.save_finding(input_str, "parsers produced different ASTs", "mismatch")
            return True

        if hand_status == "ok":
            self.stats["parse_ok"] += 1
        else:
            self.stats["parse_error"] += 1
        return False

    def run(self, duration_minutes: float = None, max_iterations: int = None):
        """Run the fuzzer."""
        self.start_time = time.time()
        end_time = self.start_time + (duration_minutes * 60) if duration_minutes else None

        print(f"Starting fuzzer (seed corpus: {len(self.SEED_CORPUS)} inputs)")
        print(f"Duration: {'unlimited' if not duration_minutes else f'{duration_minutes} minutes'}")
        print(f"Findings directory: {self.findings_dir}")
        print("-" * 60)

        corpus = list(self.SEED_CORPUS)

        try:
            while True:
                if end_time and time.time() > end_time:
                    break
                if max_iterations is not None and self.stats["iterations"] >= max_iterations:
                    break
                self.stats["iterations"] += 1

                strategy = self.rng.random()
                if strategy < 0.4:
                    input_str = self.generate_random()
                elif strategy < 0.9:
                    input_str = self.mutate(self.rng.choice(corpus))
                    for _ in range(self.rng.randint(0, 2)):
                        input_str = self.mutate(input_str)
                else:
                    input_str = self.rng.choice(corpus)

                interesting = self.test_input(input_str)

                if interesting or (self.rng.random() < 0.01 and len(input_str) < 1000):
                    corpus.append(input_str)
                    if len(corpus) > 1000:
                        corpus.pop(self.rng.randint(len(self.SEED_CORPUS), len(corpus) - 1))

                if self.stats["iterations"] % 1000 == 0:
                    self.print_stats()

        except KeyboardInterrupt:
            print("\n\nInterrupted by user")

        print("\n" + "=" * 60)
        print("Final Statistics:")
        self.print_stats()

    def print_stats(self):
        elapsed = time.time() - self.start_time
        rate = self.stats["iterations"] / elapsed if elapsed > 0 else 0

        print(f"[{elapsed:.1f}s] "
              f"iterations={self.stats['iterations']} "
              f"({rate:.0f}/s) | "
              f"ok={self.stats['parse_ok']} "
              f"reject={self.stats['parse_error']} | "
              f"crashes={self.stats['crashes']} "
              f"timeouts={self.stats['timeouts']} "
              f"mismatches={self.stats['mismatches']} "
              f"unique={len(self.stats['unique_findings'])}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Fuzz the IPLD schema parsers")
    parser.add_argument("--duration", type=float, default=None,
                        help="Duration in minutes (default: run forever)")
    parser.add_argument("--iterations", type=int, default=None,
                        help="Stop after this many inputs")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducibility")
    parser.add_argument("--findings-dir", type=Path, default=Path("fuzz_findings"),
                        help="Where to save findings (default: ./fuzz_findings)")
    args = parser.parse_args(argv)

    seed = args.seed if args.seed is not None else int(time.time())
    print(f"Random seed: {seed}")

    fuzzer = Fuzzer(seed=seed, findings_dir=args.findings_dir)
    fuzzer.run(duration_minutes=args.duration, max_iterations=args.iterations)
    return 1 if fuzzer.stats["unique_findings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
