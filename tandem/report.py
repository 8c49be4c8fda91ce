# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# report.py
# -----------------------------------------------------------------------------
# Purpose:
#   Text report in the fixed‑run‑length layout: a header with the inputs,
#   then one block per replication separated by a rule of asterisks.
#
# Usage:
#   text = format_run(cfg, results)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from typing import Dict, Iterable

RULE = "*********************************"


def _num(val: float, width: int) -> str:
    if math.isnan(val):
        return f"{'undefined':>{width}}"
    return f"{val:{width}.3f}"


def format_header(cfg: Dict) -> str:
    sim = cfg["sim"]
    means = cfg["service_means"]
    return (
        "Double-server queueing system with fixed run length\n\n"
        f"Mean interarrival time{sim['mean_interarrival']:11.3f} minutes\n\n"
        f"Mean service time 1{means['station1']:16.3f} minutes\n\n"
        f"Mean service time 2{means['station2']:16.3f} minutes\n\n"
        f"Length of the simulation{sim['run_length']:9.3f} minutes\n\n"
        f"\n\n{RULE}\n\n"
    )


def format_replication(r) -> str:
    return (
        f"\n\nAverage delay in queue 1{_num(r.avg_delay_q1, 11)} minutes\n\n"
        f"Average delay in queue 2{_num(r.avg_delay_q2, 11)} minutes\n\n"
        f"Average number in queue 1{_num(r.avg_num_q1, 10)}\n\n"
        f"Average number in queue 2{_num(r.avg_num_q2, 10)}\n\n"
        f"Server 1 utilization{_num(r.utilization1, 15)}\n\n"
        f"Server 2 utilization{_num(r.utilization2, 15)}\n\n"
        f"Number of delays completed{r.customers_delayed:7d}"
    )


def format_failure(err) -> str:
    return f"\n{err}"


def format_run(cfg: Dict, results: Iterable) -> str:
    """Header plus one block per replication (reports or failures)."""
    parts = [format_header(cfg)]
    for res in results:
        if hasattr(res, "error"):
            parts.append(format_failure(res.error))
        else:
            parts.append(format_replication(res))
        parts.append(f"\n\n{RULE}")
    return "".join(parts)
