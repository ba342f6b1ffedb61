import numpy as np
import pytest

from centroidal_mpc import (
    ActivationPolicy,
    CentroidalMPC,
    CentroidalMPCConfig,
    ConfigurationError,
    ControllerState,
    SolverSettings,
)


class TestFromDict:
    def test_valid_parameters(self, params):
        config = CentroidalMPCConfig.from_dict(params)
        assert config.number_of_knots == 5
        assert config.contact_names == ["left_foot", "right_foot"]
        assert config.contacts[0].number_of_corners == 4
        np.testing.assert_allclose(config.weights.com, [100.0, 100.0, 100.0])
        assert config.solver.tolerance == 1e-6
        assert config.contact_activation_policy is ActivationPolicy.CONSERVATIVE

    def test_optional_defaults(self, params):
        for key in ("ipopt_tolerance", "ipopt_max_iteration", "is_warm_start_enabled", "robot_mass"):
            del params[key]
        config = CentroidalMPCConfig.from_dict(params)
        assert config.solver.tolerance == 1e-8
        assert config.solver.max_iteration == 3000
        assert config.solver.verbosity == 0
        assert not config.is_warm_start_enabled
        assert not config.solver.is_cse_enabled
        assert config.robot_mass == 1.0
        assert config.static_friction_coefficient == 0.33
        assert config.number_of_friction_cone_edges == 4

    def test_number_of_knots_is_floored(self, params):
        params["time_horizon"] = 0.35
        assert CentroidalMPCConfig.from_dict(params).number_of_knots == 3

    def test_number_of_knots_exact_ratio(self, params):
        params["time_horizon"] = 0.3
        assert CentroidalMPCConfig.from_dict(params).number_of_knots == 3

    def test_default_symmetric_pair(self, params):
        config = CentroidalMPCConfig.from_dict(params)
        assert config.symmetric_contact_pairs == [("left_foot", "right_foot")]

    def test_explicit_symmetric_pairs(self, params):
        params["symmetric_contact_pairs"] = []
        assert CentroidalMPCConfig.from_dict(params).symmetric_contact_pairs == []

    def test_activation_policy(self, params):
        params["contact_activation_policy"] = "strict"
        config = CentroidalMPCConfig.from_dict(params)
        assert config.contact_activation_policy is ActivationPolicy.STRICT


class TestValidation:
    @pytest.mark.parametrize(
        "key",
        ["sampling_time", "time_horizon", "com_weight", "linear_solver", "CONTACT_1"],
    )
    def test_missing_key(self, params, key):
        del params[key]
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_horizon_shorter_than_sampling_time(self, params):
        params["time_horizon"] = 0.1
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_non_positive_sampling_time(self, params):
        params["sampling_time"] = 0.0
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_too_few_corners(self, params):
        params["CONTACT_0"]["number_of_corners"] = 2
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_missing_corner(self, params):
        del params["CONTACT_0"]["corner_3"]
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_inverted_bounding_box(self, params):
        params["CONTACT_0"]["bounding_box_lower_limit"] = [0.1, 0.0, 0.0]
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_negative_weight(self, params):
        params["contact_position_weight"] = -1.0
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_weight_with_wrong_size(self, params):
        params["com_weight"] = [1.0, 1.0]
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_duplicated_contact_names(self, params):
        params["CONTACT_1"]["contact_name"] = "left_foot"
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_integer_given_as_float(self, params):
        params["number_of_maximum_contacts"] = 2.0
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_unknown_policy(self, params):
        params["contact_activation_policy"] = "sometimes"
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    @pytest.mark.parametrize("verbosity", [-1, 13])
    def test_solver_verbosity_out_of_range(self, params, verbosity):
        params["solver_verbosity"] = verbosity
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)

    def test_highest_solver_verbosity(self, params):
        params["solver_verbosity"] = 12
        assert CentroidalMPCConfig.from_dict(params).solver.verbosity == 12

    def test_unknown_symmetric_contact(self, params):
        params["symmetric_contact_pairs"] = [["left_foot", "left_hand"]]
        with pytest.raises(ConfigurationError):
            CentroidalMPCConfig.from_dict(params)


class TestSolverSettings:
    def test_ipopt_options(self):
        plugin, solver = SolverSettings(linear_solver="ma27", tolerance=1e-5).ipopt_options()
        assert plugin["expand"]
        assert "cse" not in plugin
        assert solver["linear_solver"] == "ma27"
        assert solver["tol"] == 1e-5
        assert solver["print_level"] == 0
        assert solver["sb"] == "yes"

    def test_cse_and_verbosity(self):
        plugin, solver = SolverSettings(verbosity=5, is_cse_enabled=True).ipopt_options()
        assert plugin["cse"]
        assert plugin["print_time"]
        assert solver["print_level"] == 5
        assert "sb" not in solver


class TestInitialize:
    def test_initialize_from_mapping(self, params):
        mpc = CentroidalMPC()
        assert mpc.initialize(params)
        assert mpc.state is ControllerState.READY
        assert mpc.number_of_knots == 5
        assert mpc.current_time == 0.0

    def test_initialize_from_config(self, params):
        mpc = CentroidalMPC()
        assert mpc.initialize(CentroidalMPCConfig.from_dict(params))
        assert mpc.state is ControllerState.READY

    def test_failed_initialize_leaves_controller_untouched(self, params):
        mpc = CentroidalMPC()
        bad = dict(params, sampling_time=-1.0)
        assert not mpc.initialize(bad)
        assert mpc.state is ControllerState.UNINITIALIZED
        assert mpc.config is None

        assert mpc.initialize(params)
        config = mpc.config
        assert not mpc.initialize(bad)
        assert mpc.config is config
        assert mpc.state is ControllerState.READY
