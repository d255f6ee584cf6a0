"""Wall-normal profiles of a frozen-flow channel case.

Runs the case, averages every turbulence quantity over the streamwise
direction and plots k, epsilon, phi, nut and the phi/k ratio against the
wall-normal coordinate.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turbpot import FrozenFlowCase

ARTIFACT_DIR = Path("tests/artifacts")


def average_by_height(values: np.ndarray, nx: int, ny: int) -> np.ndarray:
    return np.asarray(values).reshape(ny, nx).mean(axis=1)


def profiles(case: FrozenFlowCase) -> dict[str, np.ndarray]:
    model = case.turbulence_model
    nx, ny = case.mesh.shape
    y = case.mesh.cell_centers[:, 1].reshape(ny, nx)[:, 0]
    data = {"y": y}
    for name, field in (
        ("k", model.k()),
        ("epsilon", model.epsilon()),
        ("phi", model.tp_phi()),
        ("nut", model.nut()),
        ("phi/k", model.phi_over_k()),
    ):
        data[name] = average_by_height(field.values, nx, ny)
    return data


def plot_profiles(data: dict[str, np.ndarray], output: Path, title: str) -> None:
    names = [name for name in data if name != "y"]
    fig, axes = plt.subplots(1, len(names), figsize=(3.2 * len(names), 4), sharey=True)
    for ax, name in zip(axes, names):
        ax.plot(data[name], data["y"])
        ax.set_xlabel(name)
    axes[0].set_ylabel("y")
    fig.suptitle(title)
    output.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output, dpi=150, bbox_inches="tight")
    plt.close(fig)


def main() -> None:
    parser = argparse.ArgumentParser(description="Plot channel turbulence profiles")
    parser.add_argument("--case", type=Path, default=Path("tests/cases/channel/system/case.yaml"))
    parser.add_argument("--output", type=Path, default=ARTIFACT_DIR / "channel_profiles.png")
    args = parser.parse_args()

    case = FrozenFlowCase.from_yaml(args.case)
    case.solve()
    data = profiles(case)
    plot_profiles(data, args.output, f"{case.model_name}: {args.case.parent.parent.name}")
    print(f"Wrote {args.output}")


if __name__ == "__main__":
    main()
