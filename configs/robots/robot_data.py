import dataclasses

import numpy as np


@dataclasses.dataclass
class RobotData:
    name: str
    mass: float
    com_height: float
    contact_names: tuple[str, ...]  # left, right
    foot_spacing: float  # lateral distance between the feet
    foot_corners: np.ndarray  # (n_corners, 3) in the foot frame
    bounding_box_lower_limit: np.ndarray  # (3,) in the foot frame
    bounding_box_upper_limit: np.ndarray  # (3,) in the foot frame

    def contact_groups(self) -> dict[str, dict]:
        """CONTACT_<i> parameter groups of the centroidal MPC."""
        groups = {}
        for i, name in enumerate(self.contact_names):
            group = {
                "contact_name": name,
                "bounding_box_lower_limit": self.bounding_box_lower_limit.tolist(),
                "bounding_box_upper_limit": self.bounding_box_upper_limit.tolist(),
                "number_of_corners": len(self.foot_corners),
            }
            for j, corner in enumerate(self.foot_corners):
                group[f"corner_{j}"] = corner.tolist()
            groups[f"CONTACT_{i}"] = group
        return groups

    def foot_position(self, name: str, x: float = 0.0) -> np.ndarray:
        side = 1.0 if self.contact_names.index(name) == 0 else -1.0
        return np.array([x, side * self.foot_spacing / 2, 0.0])
