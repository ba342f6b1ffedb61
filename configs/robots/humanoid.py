import numpy as np

from .robot_data import RobotData

FOOT_LENGTH = 0.16
FOOT_WIDTH = 0.06

humanoid = RobotData(
    name="humanoid",
    mass=55.0,
    com_height=0.70,
    contact_names=("left_foot", "right_foot"),
    foot_spacing=0.20,
    foot_corners=np.array(
        [
            [FOOT_LENGTH / 2, FOOT_WIDTH / 2, 0.0],
            [FOOT_LENGTH / 2, -FOOT_WIDTH / 2, 0.0],
            [-FOOT_LENGTH / 2, -FOOT_WIDTH / 2, 0.0],
            [-FOOT_LENGTH / 2, FOOT_WIDTH / 2, 0.0],
        ]
    ),
    # the feet can be moved on the ground plane only
    bounding_box_lower_limit=np.array([-0.08, -0.04, 0.0]),
    bounding_box_upper_limit=np.array([0.08, 0.04, 0.0]),
)
