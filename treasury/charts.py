#!/usr/bin/env python3
"""
Chart generation for the treasury dashboard
Monthly income/expense bars and movement-type distribution as PNG files
"""

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend

import logging
import matplotlib.pyplot as plt
import numpy as np
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from treasury.config import CHART_DIR, CHART_RETENTION_DAYS, PIE_CHART_MINIMUM_PERCENTAGE
from treasury.currency import format_number
from treasury.ledger import ChartPoint

logger = logging.getLogger(__name__)

plt.rcParams.update({
    'font.size': 11,
    'axes.titlesize': 13,
    'axes.labelsize': 11,
    'xtick.labelsize': 9,
    'ytick.labelsize': 9,
    'legend.fontsize': 9,
    'figure.facecolor': 'white',
    'axes.facecolor': 'white',
    'axes.edgecolor': '#333333',
    'text.color': '#333333',
    'figure.dpi': 100
})

# Navy / lime palette
INCOME_COLOR = '#84cc16'
EXPENSE_COLOR = '#1B365D'
PALETTE = ['#1B365D', '#84cc16', '#3b82f6', '#f59e0b', '#64748b', '#ec4899', '#8b5cf6']
OTHER_COLOR = '#95a5a6'


def _chart_path(output_dir: Optional[Path], prefix: str) -> Path:
    chart_dir = Path(output_dir) if output_dir else CHART_DIR
    chart_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.png"
    return chart_dir / filename


def create_monthly_flow_chart(points: Sequence[ChartPoint], currency: str,
                              output_dir: Path = None,
                              title: str = "Entradas vs Salidas") -> Optional[str]:
    """
    Grouped bar chart of income and expense per period

    Args:
        points: ledger.chart_series() output
        currency: Currency the series is expressed in
        output_dir: Where to write the PNG (CHART_DIR by default)
        title: Chart title

    Returns:
        Path to saved PNG file or None when there is nothing to draw
    """
    if not points:
        return None

    labels = [p.label for p in points]
    x = np.arange(len(points))
    width = 0.38

    fig, ax = plt.subplots(figsize=(max(6, len(points) * 0.8), 4.5), dpi=100)
    try:
        ax.bar(x - width / 2, [p.income for p in points], width,
               label='Entradas', color=INCOME_COLOR)
        ax.bar(x + width / 2, [p.expense for p in points], width,
               label='Salidas', color=EXPENSE_COLOR)

        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=45 if len(points) > 8 else 0, ha='right' if len(points) > 8 else 'center')
        ax.set_ylabel(currency)
        ax.set_title(f"{title} ({currency})", fontweight='bold', pad=15)
        ax.legend(frameon=False)

        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)
        ax.grid(True, axis='y', alpha=0.3, linestyle='--')

        filepath = _chart_path(output_dir, 'flow')
        fig.savefig(filepath, format='png', bbox_inches='tight',
                    facecolor='white', edgecolor='none', dpi=100)
    finally:
        plt.close(fig)

    logger.debug(f"Flow chart written to {filepath}")
    return str(filepath)


def create_type_distribution_chart(data: Sequence[Tuple[str, float]], currency: str,
                                   output_dir: Path = None,
                                   title: str = "Distribución por Tipo") -> Optional[str]:
    """
    Pie chart of amounts per movement type, small slices grouped as "Otros"

    Returns:
        Path to saved PNG file or None when there is nothing to draw
    """
    total = sum(amount for _, amount in data)
    if not data or total <= 0:
        return None

    labels: List[str] = []
    sizes: List[float] = []
    slice_colors: List[str] = []
    other_amount = 0.0

    for i, (name, amount) in enumerate(sorted(data, key=lambda x: x[1], reverse=True)):
        if amount / total < PIE_CHART_MINIMUM_PERCENTAGE:
            other_amount += amount
            continue
        labels.append(f"{name.title()}\n{format_number(amount, 0)} {currency}")
        sizes.append(amount)
        slice_colors.append(PALETTE[i % len(PALETTE)])

    if other_amount > 0:
        labels.append(f"Otros\n{format_number(other_amount, 0)} {currency}")
        sizes.append(other_amount)
        slice_colors.append(OTHER_COLOR)

    fig, ax = plt.subplots(figsize=(8, 6), dpi=100)
    try:
        wedges, texts, autotexts = ax.pie(
            sizes,
            labels=labels,
            colors=slice_colors,
            autopct='%1.0f%%',
            pctdistance=0.75,
            startangle=90,
            textprops={'fontsize': 9, 'color': '#333333'}
        )
        for autotext in autotexts:
            autotext.set_color('white')
            autotext.set_weight('bold')

        ax.set_title(title, fontweight='bold', pad=20)

        filepath = _chart_path(output_dir, 'types')
        fig.savefig(filepath, format='png', bbox_inches='tight',
                    facecolor='white', edgecolor='none', dpi=100)
    finally:
        plt.close(fig)

    logger.debug(f"Distribution chart written to {filepath}")
    return str(filepath)


def cleanup_old_charts(days_to_keep: int = None, chart_dir: Path = None) -> int:
    """Remove chart files older than specified days, returns how many went"""
    if days_to_keep is None:
        days_to_keep = CHART_RETENTION_DAYS
    chart_dir = Path(chart_dir) if chart_dir else CHART_DIR
    if not chart_dir.exists():
        return 0

    cutoff_time = datetime.now().timestamp() - (days_to_keep * 24 * 60 * 60)
    removed = 0
    for chart_file in chart_dir.glob('*.png'):
        if chart_file.stat().st_mtime < cutoff_time:
            chart_file.unlink()
            removed += 1
    return removed
