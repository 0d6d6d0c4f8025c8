from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.patches import Circle

from .models import LineSnapshot


def _slot_xy(index: int) -> Tuple[float, float]:
    return (float(index), 0.0)


@dataclass
class BeltArtists:
    ax: object
    biscuits: List[Circle]
    labels: List[object]
    ready_text: object
    alarm_text: object


def draw_belt(ax, belt_length: int) -> BeltArtists:
    """Draw the static belt and return the per-slot artists to update."""
    ax.set_aspect("equal")
    ax.set_xlim(-1, belt_length + 1.5)
    ax.set_ylim(-1.5, 1.5)
    ax.axis("off")

    ax.plot([-0.5, belt_length - 0.5], [0.0, 0.0], linewidth=24, alpha=0.25, solid_capstyle="butt")
    for i in range(belt_length):
        x, y = _slot_xy(i)
        ax.text(x, y - 0.75, str(i), ha="center", va="center", fontsize=8)
    ax.text(-0.5, -1.2, "input", ha="left", va="center", fontsize=8)
    ax.text(belt_length - 0.5, -1.2, "output", ha="right", va="center", fontsize=8)

    biscuits: List[Circle] = []
    labels = []
    for i in range(belt_length):
        x, y = _slot_xy(i)
        c = Circle((x, y), 0.3, visible=False)
        ax.add_patch(c)
        biscuits.append(c)
        labels.append(ax.text(x, y + 0.55, "", ha="center", va="bottom", fontsize=8))

    ready_text = ax.text(belt_length + 0.2, 0.0, "", ha="left", va="center", fontsize=9)
    alarm_text = ax.text(0.02, 0.98, "", transform=ax.transAxes, ha="left", va="top", fontsize=8)
    return BeltArtists(ax=ax, biscuits=biscuits, labels=labels, ready_text=ready_text, alarm_text=alarm_text)


def render_frame(artists: BeltArtists, snap: LineSnapshot, mark: str = "s..") -> None:
    for i, payload in enumerate(snap.slots):
        artists.biscuits[i].set_visible(payload is not None)
        if payload is None:
            artists.labels[i].set_text("")
        else:
            artists.labels[i].set_text(f"x{payload.count(mark)}")

    artists.ready_text.set_text(f"ready: {len(snap.ready)}")
    artists.alarm_text.set_text("\n".join(snap.alarms[-4:]))
    artists.ax.set_title(f"Biscuit line  rev={snap.revolution}  tick={snap.tick}  {snap.state}")


def run_visualization(
    frames: Sequence[LineSnapshot],
    interval_ms: int = 400,
    mark: str = "s..",
    belt_length: Optional[int] = None,
) -> FuncAnimation:
    """Replay recorded snapshots as a matplotlib animation.

    - interval_ms: milliseconds per recorded revolution.
    - mark: stamp marker, used to label each biscuit with its stamp count.
    """
    if not frames:
        raise ValueError("No frames to visualize; run the line first.")

    length = belt_length or len(frames[0].slots)
    fig, ax = plt.subplots(figsize=(10, 3))
    artists = draw_belt(ax, length)

    def update(frame_idx: int):
        render_frame(artists, frames[frame_idx], mark=mark)
        return tuple(artists.biscuits) + (artists.ready_text, artists.alarm_text)

    anim = FuncAnimation(fig, update, frames=len(frames), interval=interval_ms, blit=False, repeat=False)
    plt.show()
    return anim
