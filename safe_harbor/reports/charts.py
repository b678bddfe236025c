"""Chart generation for Safe Harbor reports.

Creates matplotlib charts saved as PNG files for embedding in PDF
reports.
"""

from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from safe_harbor.models.safe_harbor import SAFE_HARBOR_THRESHOLD_PCT


def create_safe_harbor_chart(
    names: List[str],
    percentages: List[Optional[float]],
    output_path: str,
) -> None:
    """Create a bar chart of safe-harbor percentage by project.

    Bars at or above 5% are green, below are red; an undefined percentage
    is drawn as zero. A dashed line marks the 5% threshold.

    Args:
        names: Project names.
        percentages: Safe-harbor percentages (None if undefined).
        output_path: File path to save the PNG chart.
    """
    if not names:
        return

    values = [p if p is not None else 0.0 for p in percentages]
    colors = ["#2e7d32" if v >= SAFE_HARBOR_THRESHOLD_PCT else "#c62828" for v in values]

    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    ax.bar(range(len(names)), values, color=colors, alpha=0.85)
    ax.axhline(y=SAFE_HARBOR_THRESHOLD_PCT, color="black", linestyle="--", linewidth=1,
               label="5% safe harbor threshold")

    ax.set_xticks(range(len(names)))
    ax.set_xticklabels(names, rotation=30, ha="right", fontsize=9)
    ax.set_ylabel("Allocated / Total Cost", fontsize=11)
    ax.set_title("Safe Harbor Percentage by Project", fontsize=13, fontweight="bold")
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, _: f"{x:.0f}%"))
    ax.legend(fontsize=9)
    ax.grid(axis="y", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)


def create_group_pie_chart(group_counts: Dict[str, int], output_path: str) -> None:
    """Create a pie chart of projects by strategic group.

    Args:
        group_counts: Mapping of group label to project count.
        output_path: File path to save the PNG chart.
    """
    counts = {k: v for k, v in group_counts.items() if v > 0}
    if not counts:
        return

    fig, ax = plt.subplots(figsize=(6, 5), dpi=150)
    palette = ["#2e7d32", "#1565c0", "#ef6c00", "#c62828", "#757575"]
    _, _, autotexts = ax.pie(
        list(counts.values()),
        labels=list(counts.keys()),
        autopct="%1.0f%%",
        colors=palette[:len(counts)],
        textprops={"fontsize": 10},
        startangle=90,
    )
    for autotext in autotexts:
        autotext.set_fontweight("bold")

    ax.set_title("Projects by Group", fontsize=13, fontweight="bold", pad=15)
    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
