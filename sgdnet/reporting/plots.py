"""Headless-safe error curve plotting."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple


class PlotAdapter:
    """Collect per-epoch evaluation errors and optionally render them with matplotlib.

    Every name in ``metrics`` becomes one curve; ``target_error`` draws the
    early-stopping threshold as a horizontal line.
    """

    def __init__(
        self,
        run_dir: str | Path,
        enable_plots: bool = False,
        metrics: Sequence[str] = ("loss", "max_row_loss"),
        target_error: float | None = None,
    ):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.metrics = tuple(metrics)
        self.target_error = target_error
        self._history: Dict[str, List[Tuple[int, float]]] = {name: [] for name in self.metrics}
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        for name in self.metrics:
            if name in metrics:
                self._history[name].append((int(epoch), float(metrics[name])))

    def close(self) -> Path | None:
        """Write ``errors.png`` into ``run_dir`` and return its path."""

        series = {name: points for name, points in self._history.items() if points}
        if not self.enable_plots or not series:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots()
        for name, points in series.items():
            epochs, values = zip(*points)
            ax.plot(epochs, values, label=name)
        if self.target_error is not None:
            ax.axhline(self.target_error, color="grey", linestyle="--", label="target_error")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Error")
        ax.set_title("Test error")
        ax.legend()
        plot_path = self.run_dir / "errors.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
