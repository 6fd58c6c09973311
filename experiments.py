"""
HuffZip experiments: compression behaviour across byte distributions and sizes

Every run pushes one synthetic dataset through the whole codec
(frequency table -> tree -> codes -> artifact -> decode) and records timings,
sizes and code statistics.

  distribution   fixed size, one point per generator
  scaling        doubling sizes from 4 KB up to --scaling_max_kb
  entropy        average code length against Shannon entropy, all generators

Outputs (in --outdir): metrics.csv, summary.csv and one PNG per chart.

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --runs 3 --size_kb 64 --scaling_max_kb 1024 --skip entropy

compression_ratio is artifact bytes / original bytes (lower is better);
space_savings is 1 - compression_ratio, the figure the CLI reports;
estimated_space_savings uses the old payload + 10 bytes/symbol header estimate.
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt

import container
import huffman as huff


EXPERIMENTS = ("distribution", "scaling", "entropy")
SCALING_MIN_BYTES = 4 * 1024


def elapsed_ms(start_ns: int) -> float:
    return (time.perf_counter_ns() - start_ns) / 1_000_000.0

def shannon_entropy(ft: Dict[int, int]) -> float:
    total = sum(ft.values())
    return -sum((c / total) * math.log2(c / total) for c in ft.values())


# Synthetic dataset generators

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.choices(range(alphabet), k=size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / (rank ** s) for rank in range(1, alphabet + 1)]
    return bytes(rng.choices(range(alphabet), weights=weights, k=size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    # dominant byte with probability dom_frac, the other 255 share the rest evenly
    rng = random.Random(seed)
    weights = [dom_frac if b == dominant else (1 - dom_frac) / 255 for b in range(256)]
    return bytes(rng.choices(range(256), weights=weights, k=size))

def gen_single(size: int, symbol: int = ord('A'), seed: int = 0) -> bytes:
    return bytes([symbol]) * size

ENGLISH_TIERS = (
    (" ", 13.0),
    ("\n", 1.5),
    ("etaoinshrdlu", 6.0),
    ("cmfwgypbvk", 2.5),
    ("jxq", 1.2),
)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    alphabet, weights = [], []
    for chars, weight in ENGLISH_TIERS:
        for ch in dict.fromkeys(chars + chars.upper()):
            alphabet.append(ord(ch))
            weights.append(weight)
    return bytes(rng.choices(alphabet, weights=weights, k=size))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single": lambda size, seed: gen_single(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator: {name} (known: {', '.join(sorted(GENERATOR_REGISTRY))})")
    return name, fn(max(1, size_bytes), seed)


# One codec run

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int

    build_huffman_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    header_bytes: int
    payload_bytes: int
    artifact_bytes: int
    pad_bits: int
    compression_ratio: float
    space_savings: float
    estimated_space_savings: float

    avg_code_length: float
    entropy_bits: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, exp_name: str = "", dataset_name: str = "", run_id: int = 0) -> MetricRow:
    start = time.perf_counter_ns()
    ft = huff.build_frequency_table(data)
    code_map = huff.generate_huffman_codes(huff.build_huffman_tree(ft))
    build_ms = elapsed_ms(start)

    start = time.perf_counter_ns()
    packed, pad_bits = huff.pack_bits_from_codes(data, code_map)
    artifact = container.write_header(ft) + packed
    encode_ms = elapsed_ms(start)

    # decode rebuilds the tree from the header like any reader would
    start = time.perf_counter_ns()
    decoded = container.decode(artifact)
    decode_ms = elapsed_ms(start)

    report = container.make_report(len(data), artifact)
    return MetricRow(
        exp_name=exp_name,
        dataset_name=dataset_name,
        file_size_bytes=len(data),
        run_id=run_id,
        unique_symbols=len(ft),
        build_huffman_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        header_bytes=report.header_size,
        payload_bytes=report.payload_size,
        artifact_bytes=report.compressed_size,
        pad_bits=pad_bits,
        compression_ratio=report.compressed_size / len(data),
        space_savings=report.ratio,
        estimated_space_savings=report.estimated_ratio,
        avg_code_length=huff.encoded_bit_length(ft, code_map) / len(data),
        entropy_bits=shannon_entropy(ft),
        correctness_ok=int(decoded == data),
    )


# CSV output

SUMMARY_METRICS = (
    "compression_ratio",
    "space_savings",
    "estimated_space_savings",
    "avg_code_length",
    "entropy_bits",
    "encode_ms",
    "decode_ms",
    "total_ms",
)

def _write_dicts(path: Path, fieldnames: Sequence[str], records: Iterable[dict]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(records)

def write_csv(path: Path, rows: List[MetricRow]) -> None:
    _write_dicts(path, [f.name for f in fields(MetricRow)], (asdict(r) for r in rows))

def group_rows(rows: List[MetricRow]) -> Dict[Tuple[str, str, int], List[MetricRow]]:
    groups: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        groups.setdefault((r.exp_name, r.dataset_name, r.file_size_bytes), []).append(r)
    return groups

def summarize(key: Tuple[str, str, int], items: List[MetricRow]) -> dict:
    exp_name, dataset_name, size_b = key
    out = {"exp_name": exp_name, "dataset_name": dataset_name, "file_size_bytes": size_b, "n_runs": len(items)}
    for m in SUMMARY_METRICS:
        vals = [getattr(x, m) for x in items]
        out[f"{m}_mean"] = statistics.mean(vals)
        out[f"{m}_stdev"] = statistics.stdev(vals) if len(vals) > 1 else 0.0
    out["correctness_ok_rate"] = statistics.mean(x.correctness_ok for x in items)
    return out

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    groups = group_rows(rows)
    records = [summarize(key, groups[key]) for key in sorted(groups)]
    names = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    names += [f"{m}_{stat}" for m in SUMMARY_METRICS for stat in ("mean", "stdev")]
    names.append("correctness_ok_rate")
    _write_dicts(out_path, names, records)


# Charts

def mean_of(rows: List[MetricRow], field: str, **match) -> float:
    vals = [getattr(r, field) for r in rows if all(getattr(r, k) == v for k, v in match.items())]
    return statistics.mean(vals) if vals else float("nan")

def line_chart(path: Path, title: str, ylabel: str, x: Sequence, series: Dict[str, List[float]],
               xlabel: str = "", xticks: Optional[Sequence[str]] = None) -> None:
    plt.figure()
    for label, ys in series.items():
        plt.plot(x, ys, marker="o", label=label)
    if xticks is not None:
        plt.xticks(x, xticks, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    if len(series) > 1:
        plt.legend()
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()

def _by_dataset_charts(rows: List[MetricRow], outdir: Path, exp_name: str,
                       charts: Sequence[Tuple[str, str, str, Dict[str, str]]]) -> None:
    exp_rows = [r for r in rows if r.exp_name == exp_name]
    if not exp_rows:
        return
    datasets = sorted({r.dataset_name for r in exp_rows})
    x = list(range(len(datasets)))
    for filename, title, ylabel, metrics in charts:
        series = {label: [mean_of(exp_rows, m, dataset_name=d) for d in datasets] for label, m in metrics.items()}
        line_chart(outdir / filename, title, ylabel, x, series, xticks=datasets)

def plot_distribution(rows: List[MetricRow], outdir: Path) -> None:
    _by_dataset_charts(rows, outdir, "distribution", [
        ("distribution_space_savings.png", "Space Savings by Distribution",
         "Space Savings (1 - compressed / original)",
         {"actual artifact": "space_savings", "header estimate": "estimated_space_savings"}),
        ("distribution_codec_time.png", "Encode / Decode Time by Distribution", "Time (ms)",
         {"encode": "encode_ms", "decode": "decode_ms"}),
    ])

def plot_entropy(rows: List[MetricRow], outdir: Path) -> None:
    _by_dataset_charts(rows, outdir, "entropy", [
        ("entropy_code_length.png", "Code Length vs Entropy by Dataset", "Bits per Symbol",
         {"Huffman avg code length": "avg_code_length", "Shannon entropy": "entropy_bits"}),
    ])

def plot_scaling(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "scaling"]
    for dist in sorted({r.dataset_name for r in exp_rows}):
        sizes = sorted({r.file_size_bytes for r in exp_rows if r.dataset_name == dist})

        def series(field: str) -> List[float]:
            return [mean_of(exp_rows, field, dataset_name=dist, file_size_bytes=s) for s in sizes]

        line_chart(outdir / f"scaling_codec_time_{dist}.png", f"Codec Time vs Size ({dist})", "Time (ms)",
                   sizes, {"encode": series("encode_ms"), "decode": series("decode_ms")},
                   xlabel="File Size (bytes)")
        line_chart(outdir / f"scaling_compression_ratio_{dist}.png", f"Compression Ratio vs Size ({dist})",
                   "Artifact Bytes / Original Bytes", sizes, {"ratio": series("compression_ratio")},
                   xlabel="File Size (bytes)")


# Main

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Measure HuffZip on synthetic byte distributions")
    ap.add_argument("--outdir", type=Path, default=Path("results"), help="Output directory for CSV and charts")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--size_kb", type=int, default=512, help="Dataset size for the distribution and entropy runs")
    ap.add_argument("--scaling_max_kb", type=int, default=8192, help="Largest size for the scaling run")
    ap.add_argument("--generators", type=lambda s: [x.strip() for x in s.split(",") if x.strip()],
                    default=["uniform256", "zipf128", "repetitive90", "english_like"],
                    help="Comma-separated generators for the distribution and scaling runs")
    ap.add_argument("--skip", action="append", choices=EXPERIMENTS, default=[], help="Experiment to leave out")
    return ap


def run_experiments(args) -> List[MetricRow]:
    size_b = max(1, args.size_kb) * 1024
    plan: List[Tuple[str, str, int]] = []
    if "distribution" not in args.skip:
        plan += [("distribution", g, size_b) for g in args.generators]
    if "scaling" not in args.skip:
        sizes = []
        s = SCALING_MIN_BYTES
        while s <= args.scaling_max_kb * 1024:
            sizes.append(s)
            s *= 2
        plan += [("scaling", g, s) for g in args.generators for s in sizes]
    if "entropy" not in args.skip:
        plan += [("entropy", g, size_b) for g in sorted(GENERATOR_REGISTRY)]

    rows: List[MetricRow] = []
    for i, (exp_name, gen_name, size) in enumerate(plan):
        for run_id in range(1, args.runs + 1):
            name, data = generate_dataset(gen_name, size, args.seed + 1000 * i + run_id)
            rows.append(run_one(data, exp_name, name, run_id))
    return rows


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    args.outdir.mkdir(parents=True, exist_ok=True)

    rows = run_experiments(args)
    write_csv(args.outdir / "metrics.csv", rows)
    group_summary(rows, args.outdir / "summary.csv")
    plot_distribution(rows, args.outdir)
    plot_scaling(rows, args.outdir)
    plot_entropy(rows, args.outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {args.outdir / 'metrics.csv'}")
    print(f"Wrote grouped summary to {args.outdir / 'summary.csv'}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", args.outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
