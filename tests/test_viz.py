import asyncio

import pytest

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from biscuit_sim.viz import draw_belt, render_frame  # noqa: E402


def test_render_frame_matches_snapshot(line):
    asyncio.run(line.run(4, drain=False))
    snap = line.frames[-1]

    fig, ax = plt.subplots()
    try:
        artists = draw_belt(ax, line.conveyor.length)
        render_frame(artists, snap)

        visible = [c.get_visible() for c in artists.biscuits]
        assert visible == [s is not None for s in snap.slots]
        assert artists.labels[1].get_text() == "x0"
        assert artists.labels[2].get_text() == "x1"
        assert artists.ready_text.get_text() == "ready: 0"
        assert "rev=4" in ax.get_title()
    finally:
        plt.close(fig)
