import argparse

import numpy as np

import config
from centroidal_mpc import CentroidalMPC
from utils.contact_utils import (
    analyze_contact_phases,
    contact_sequence,
    create_walking_phase_list,
)
from utils.logging import color_print, format_vector, print_footsteps
from utils.simulation import save_trajectory_results, simulate_closed_loop
from utils.visualization import plot_closed_loop


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Walk in closed loop with the centroidal MPC"
    )
    parser.add_argument("--steps", type=int, default=config.experiment.number_of_steps)
    parser.add_argument("--step-length", type=float, default=config.experiment.step_length)
    parser.add_argument("--no-plot", action="store_true", help="Skip the plots")
    parser.add_argument("--results-dir", type=str, default="results")
    args = parser.parse_args()

    experiment = config.experiment
    robot = config.robot_data

    # ========================================================
    # Stage 0: Setup
    # ========================================================
    color_print("orange", "Stage 0: Setup")
    mpc = CentroidalMPC()
    if not mpc.initialize(config.mpc_parameters):
        color_print("red", "Unable to initialize the centroidal MPC")
        return

    phase_list = create_walking_phase_list(
        robot,
        number_of_steps=args.steps,
        step_length=args.step_length,
        swing_duration=experiment.swing_duration,
        double_support_duration=experiment.double_support_duration,
        initial_double_support_duration=experiment.initial_double_support_duration,
    )
    duration = experiment.initial_double_support_duration + args.steps * (
        experiment.swing_duration + experiment.double_support_duration
    )

    dt = experiment.sampling_time
    sequence = contact_sequence(
        phase_list, robot.contact_names, 0.0, dt, int(round(duration / dt))
    )
    for phase in analyze_contact_phases(sequence, dt):
        print(
            f"  {phase['start_time']:5.2f}s  {phase['duration']:4.2f}s  "
            f"{phase['phase_type']}"
        )

    # ========================================================
    # Stage 1: Closed loop
    # ========================================================
    color_print("orange", "Stage 1: Closed loop")
    initial_com = np.array([0.0, 0.0, robot.com_height])
    log = simulate_closed_loop(
        mpc,
        phase_list,
        initial_com=initial_com,
        duration=duration,
        com_height=robot.com_height,
        mass=robot.mass,
    )

    if log.failures:
        color_print("red", f"The MPC failed at t = {mpc.current_time:.2f}s")
    else:
        color_print("green", "Closed loop completed.")
    if log.com:
        color_print("blue", f"Final CoM: {format_vector(log.com[-1])}")
    print_footsteps(log.footsteps)

    # ========================================================
    # Stage 2: Results
    # ========================================================
    color_print("orange", "Stage 2: Results")
    save_trajectory_results(log, args.results_dir)
    if not args.no_plot:
        plot_closed_loop(
            log,
            list(robot.contact_names),
            save_path=f"{args.results_dir}/closed_loop.png",
        )


if __name__ == "__main__":
    main()
