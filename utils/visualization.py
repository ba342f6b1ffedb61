import matplotlib.pyplot as plt
import numpy as np

from .simulation import ClosedLoopLog


def plot_closed_loop(
    log: ClosedLoopLog,
    contact_names: list[str],
    save_path: str = "results/closed_loop.png",
    show_plot: bool = False,
) -> None:
    """
    Plot the CoM trajectory, the footsteps and the vertical contact forces.
    Args:
        log: Closed-loop log
        contact_names: Names of the contact slots, in the order of the forces
        save_path: Output image
        show_plot: Show the figure in addition to saving it
    """
    time = np.array(log.time)
    com = np.array(log.com).reshape(-1, 3)
    forces = np.array(log.contact_forces).reshape(-1, len(contact_names), 3)

    fig, axes = plt.subplots(3, 1, figsize=(10, 10))

    ax = axes[0]
    ax.plot(com[:, 0], com[:, 1], "k-", label="CoM")
    for name in contact_names:
        steps = np.array(log.footsteps.get(name, [])).reshape(-1, 3)
        ax.plot(steps[:, 0], steps[:, 1], "s", label=name)
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.set_title("CoM and footsteps")
    ax.axis("equal")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    for i, axis in enumerate("xyz"):
        ax.plot(time, com[:, i], label=f"CoM {axis}")
    ax.set_xlabel("Time [s]")
    ax.set_ylabel("Position [m]")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[2]
    for i, name in enumerate(contact_names):
        ax.plot(time, forces[:, i, 2], label=f"{name} f_z")
    ax.set_xlabel("Time [s]")
    ax.set_ylabel("Force [N]")
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    if show_plot:
        plt.show()
    plt.close(fig)
