import argparse
import csv
import re
import subprocess
import sys
from datetime import datetime

from dexined_edge.main import MODEL_PATH

TIMING_RE = re.compile(r"^\[timing\]\s+(.*)$")
KV_RE = re.compile(r"([a-zA-Z0-9_]+)=([^\s]+)")

TABLE_HEADERS = ["case", "status", "infer", "fps", "fps_1p_low", "pre", "run", "post"]
CSV_FIELDS = TABLE_HEADERS + ["timing_line", "stderr"]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark matrix runner for the DexiNed edge pipeline")
    parser.add_argument("--input", required=True, help="Video file to benchmark on")
    parser.add_argument("--model", default=MODEL_PATH)
    parser.add_argument("--backends", default="onnx,opencv", help="Comma-separated backends: onnx,opencv")
    parser.add_argument(
        "--providers",
        default="auto,cpu",
        help="Comma-separated ONNX Runtime providers (onnx backend only)"
    )
    parser.add_argument("--warmup", type=int, default=10)
    parser.add_argument("--max-frames", type=int, default=120)
    parser.add_argument("--timing-interval", type=int, default=60)
    parser.add_argument("--output-csv", default="")
    return parser.parse_args(argv)


def parse_list(values):
    return [x.strip() for x in values.split(",") if x.strip()]


def parse_timing_line(line):
    """Key/value pairs of a ``[timing]`` line, or None for other lines."""
    m = TIMING_RE.match(line)
    if m is None:
        return None
    return dict(KV_RE.findall(m.group(1)))


def build_cases(model, backends, providers):
    cases = []
    for backend in backends:
        if backend == "onnx":
            for provider in providers:
                cases.append({"case": f"onnx:{provider}", "backend": backend, "provider": provider, "model": model})
        else:
            cases.append({"case": backend, "backend": backend, "provider": None, "model": model})
    return cases


def build_command(case, args):
    cmd = [
        sys.executable,
        "-m", "dexined_edge",
        "--input", args.input,
        "--model", case["model"],
        "--backend", case["backend"],
        "--warmup", str(args.warmup),
        "--timing-interval", str(args.timing_interval),
        "--max-frames", str(args.max_frames),
        "--stage-timing",
        "--no-display",
    ]
    if case["provider"]:
        cmd.extend(["--provider", case["provider"]])
    return cmd


def run_case(cmd):
    proc = subprocess.run(cmd, capture_output=True, text=True)
    timing_lines = [ln for ln in (proc.stdout or "").splitlines() if TIMING_RE.match(ln)]
    if proc.returncode != 0:
        return {"status": "error", "returncode": proc.returncode, "stderr": proc.stderr.strip()}
    if not timing_lines:
        return {"status": "error", "returncode": 0, "stderr": "No [timing] output found"}

    last = timing_lines[-1]
    values = parse_timing_line(last)
    values["status"] = "ok"
    values["timing_line"] = last
    return values


def print_table(rows):
    print(" | ".join(TABLE_HEADERS))
    print(" | ".join(["---"] * len(TABLE_HEADERS)))
    for row in rows:
        print(" | ".join(str(row.get(h, "")) for h in TABLE_HEADERS))


def write_csv(rows, path):
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def main(argv=None):
    args = parse_args(argv)
    cases = build_cases(args.model, parse_list(args.backends), parse_list(args.providers))

    rows = []
    for case in cases:
        print(f"Running: {case['case']}")
        result = run_case(build_command(case, args))
        row = {"case": case["case"], "status": result.get("status", "error")}
        for key in CSV_FIELDS[2:]:
            row[key] = result.get(key, "")
        rows.append(row)

    print()
    print_table(rows)

    output_csv = args.output_csv
    if not output_csv:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_csv = f"benchmark_results_{stamp}.csv"
    write_csv(rows, output_csv)
    print(f"\nSaved: {output_csv}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
