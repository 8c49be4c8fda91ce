"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides
(and optionally the historical four-number parameter file), runs the
replications, and writes the fixed-run-length text report for each scenario.
Per-replication utilization is printed and can be plotted for a quick look.
"""

from __future__ import annotations
import argparse, logging, os, sys
from typing import Dict, List, Optional

from tandem.config import (
    DEFAULT_CONFIG, ROOT, ConfigError, apply_overrides, load_cfg,
    load_params_file, validate_cfg,
)
from tandem.queues import SimulationError
from tandem.report import RULE, format_failure, format_header, format_replication
from tandem.simulation import run_replications

from .scenarios import SCENARIOS

logger = logging.getLogger(__name__)


def scenario_cfg(cfg: Dict, sc: Dict, params: Optional[Dict] = None, replications: Optional[int] = None) -> Dict:
    """Baseline -> scenario overrides -> parameter file -> CLI replication count."""
    new = apply_overrides(cfg, sc["overrides"])
    if params:
        new = apply_overrides(new, params)
    if replications is not None:
        new = apply_overrides(new, {"experiments": {"replications": replications}})
    return validate_cfg(new)


def select_scenarios(name: str) -> List[Dict]:
    """Scenarios for --scenario; 'all' skips entries marked in_all=False."""
    if name == "all":
        return [sc for sc in SCENARIOS if sc.get("in_all", True)]
    return [sc for sc in SCENARIOS if sc["name"] == name]


def output_path(base: str, scenario_name: str, multiple: bool) -> str:
    """One report file per scenario when several scenarios run together."""
    if not os.path.isabs(base):
        base = os.path.join(ROOT, base)
    if not multiple:
        return base
    stem, ext = os.path.splitext(base)
    return f"{stem}_{scenario_name}{ext or '.out'}"


def plot_replications(results: List, scenario_name: str, out_dir: str):
    """
    Persist a PNG with per-replication server utilization and average queue
    length for both stations. Returns the path, or None when nothing to plot.
    """
    reports = [r for r in results if not hasattr(r, "error")]
    if not reports:
        return None
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt  # type: ignore
    except Exception:
        logger.warning("matplotlib unavailable; skipping plot for %s", scenario_name)
        return None
    x = list(range(1, len(reports) + 1))
    fig, (ax_u, ax_q) = plt.subplots(1, 2, figsize=(10, 4))
    width = 0.4
    ax_u.bar([i - width / 2 for i in x], [r.utilization1 for r in reports], width, label="Server 1", color="#2563eb")
    ax_u.bar([i + width / 2 for i in x], [r.utilization2 for r in reports], width, label="Server 2", color="#d97706")
    ax_u.set_xlabel("Replication")
    ax_u.set_ylabel("Utilization")
    ax_u.set_ylim(0, 1)
    ax_u.legend()
    ax_q.plot(x, [r.avg_num_q1 for r in reports], marker="o", label="Queue 1", color="#2563eb")
    ax_q.plot(x, [r.avg_num_q2 for r in reports], marker="o", label="Queue 2", color="#d97706")
    ax_q.set_xlabel("Replication")
    ax_q.set_ylabel("Average number in queue")
    ax_q.legend()
    for ax in (ax_u, ax_q):
        ax.grid(True, linestyle="--", alpha=0.4)
    fig.suptitle(f"{scenario_name}: per-replication estimates")
    os.makedirs(out_dir, exist_ok=True)
    safe_name = scenario_name.lower().replace(" ", "_")
    out_path = os.path.join(out_dir, f"{safe_name}_replications.png")
    fig.tight_layout()
    fig.savefig(out_path, dpi=160)
    plt.close(fig)
    return out_path


def run_scenario(cfg: Dict, name: str, out_path: str):
    """Run one scenario, streaming the report to out_path. Re-raises fatal errors."""
    exp = cfg["experiments"]
    replications = exp["replications"]
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    print(f"Scenario: {name} (replications={replications}, generator={cfg['sim']['generator']}, seed {cfg['sim']['seed']})")
    with open(out_path, "w") as f:
        f.write(format_header(cfg))

        def _emit(rep: int, res):
            if hasattr(res, "error"):
                f.write(format_failure(res.error))
                print(f"    rep {rep:2d}: FAILED ({res.error})")
            else:
                f.write(format_replication(res))
                print(
                    f"    rep {rep:2d}: util1={res.utilization1:.3f} util2={res.utilization2:.3f} "
                    f"Lq1={res.avg_num_q1:.3f} Lq2={res.avg_num_q2:.3f} delayed={res.customers_delayed}"
                )
            f.write(f"\n\n{RULE}")
            f.flush()

        results = run_replications(
            cfg,
            replications=replications,
            reseed=bool(exp["reseed_replications"]),
            halt_on_error=bool(exp["halt_on_error"]),
            callback=_emit,
        )
    print(f"  Report written to: {out_path}")
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tandem-experiments",
        description="Two-station tandem queue with fixed run length",
    )
    names = [sc["name"] for sc in SCENARIOS]
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config (default: config/baseline.yaml)")
    parser.add_argument("--params-file", default=None,
                        help="four numbers: mean interarrival, mean service 1, mean service 2, run length")
    parser.add_argument("--scenario", default="baseline", choices=names + ["all"])
    parser.add_argument("--replications", type=int, default=None)
    parser.add_argument("--output", default=None, help="report file (default: experiments.output from config)")
    parser.add_argument("--plot", action="store_true", help="save per-replication PNG next to the report")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point: run the selected scenarios and write their reports."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        cfg = load_cfg(args.config)
        params = load_params_file(args.params_file) if args.params_file else None
        scenarios = select_scenarios(args.scenario)
        configs = [(sc["name"], scenario_cfg(cfg, sc, params, args.replications)) for sc in scenarios]
    except (OSError, ConfigError) as exc:
        logger.error("configuration error: %s", exc)
        print(f"[error] {exc}", file=sys.stderr)
        return 2

    multiple = len(configs) > 1
    for name, sc_cfg in configs:
        base = args.output or sc_cfg["experiments"].get("output", "experiments/output/tandem.out")
        out_path = output_path(base, name, multiple)
        try:
            results = run_scenario(sc_cfg, name, out_path)
        except SimulationError as err:
            print(f"  Run aborted: {err}")
            print(f"  Partial report written to: {out_path}")
            return err.exit_code
        if args.plot:
            plot_path = plot_replications(results, name, os.path.dirname(out_path))
            if plot_path:
                print(f"  Replication plot saved to: {plot_path}")
        print("-")
    return 0


if __name__ == "__main__":
    sys.exit(main())
