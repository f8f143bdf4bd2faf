from io import BytesIO

import matplotlib
from discord import File

matplotlib.use("Agg")
from matplotlib import image as mpimg
from matplotlib import pyplot as plt
from matplotlib.offsetbox import AnnotationBbox, OffsetImage

_BACKGROUND = "#2C2F33"
_ROW_COLORS = ("#36393F", "#40444B")
_AVATAR_ZOOM = 0.28


def _decode_avatar(data: bytes | None):
    if not data:
        return None
    try:
        return mpimg.imread(BytesIO(data), format="png")
    except (OSError, ValueError, SyntaxError) as exc:
        print(f"[leaderboard] skipping unreadable avatar: {exc}")
        return None


def _render_board(
    *,
    title: str,
    rows: list[tuple[str, str]],
    value_color: str,
    filename: str,
    avatars: list[bytes | None] | None = None,
) -> File:
    height = 0.8 + 0.6 * max(1, len(rows))
    fig, ax = plt.subplots(figsize=(6.5, height))
    fig.patch.set_facecolor(_BACKGROUND)
    ax.set_facecolor(_BACKGROUND)
    ax.set_xlim(0, 1)
    ax.set_ylim(len(rows) + 0.2, -1.2)
    ax.axis("off")

    label_x = 0.13 if avatars else 0.03
    ax.text(0.5, -0.7, title, ha="center", va="center", color="white", fontsize=18, fontweight="bold")
    for idx, (label, value) in enumerate(rows):
        ax.axhspan(idx - 0.45, idx + 0.45, color=_ROW_COLORS[idx % 2])
        if avatars and idx < len(avatars):
            picture = _decode_avatar(avatars[idx])
            if picture is not None:
                ax.add_artist(
                    AnnotationBbox(OffsetImage(picture, zoom=_AVATAR_ZOOM), (0.065, idx), frameon=False)
                )
        ax.text(label_x, idx, f"{idx + 1}. {label}", ha="left", va="center", color="white", fontsize=12)
        ax.text(0.97, idx, value, ha="right", va="center", color=value_color, fontsize=12, fontweight="bold")

    buf = BytesIO()
    fig.tight_layout(pad=0.3)
    fig.savefig(buf, format="png", dpi=120, facecolor=fig.get_facecolor())
    plt.close(fig)
    buf.seek(0)
    return File(buf, filename=filename)


def build_xp_leaderboard_image(
    rows: list[tuple[str, int]],
    avatars: list[bytes | None] | None = None,
) -> File:
    return _render_board(
        title="Top XP Earners",
        rows=[(name, f"{int(xp):,} XP") for name, xp in rows],
        value_color="#7289DA",
        filename="xp-leaderboard.png",
        avatars=avatars,
    )


def build_perk_leaderboard_image(rows: list[tuple[str, int]]) -> File:
    return _render_board(
        title="Top Perks Obtained",
        rows=[(name, f"{int(count):,} times") for name, count in rows],
        value_color="#FFA07A",
        filename="perk-leaderboard.png",
    )
